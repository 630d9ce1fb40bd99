"""Audit log Pydantic v2 response schemas for the admin report."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from session_export.schemas.common import PaginationMeta


class AuditLogEntryResponse(BaseModel):
    """One audit trail entry."""

    job_id: str
    tenant_id: str
    actor_id: str | None = None
    status: str
    status_detail: str
    filters: dict[str, Any] | None = None
    record_count: int | None = None
    delivery_target: str | None = None
    attempts: int | None = None
    error: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
    recorded_at: datetime

    model_config = {"from_attributes": True}


class PaginatedAuditLogResponse(BaseModel):
    """Paginated list of audit entries."""

    items: list[AuditLogEntryResponse]
    pagination: PaginationMeta


class CurrentUserResponse(BaseModel):
    """The authenticated admin caller."""

    id: str
    tenant_id: str
    roles: list[str]

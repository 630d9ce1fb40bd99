"""Admin endpoints: caller identity and the export audit report."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query

from session_export.core.container import ExportContainer
from session_export.core.dependencies import get_export_container, require_admin
from session_export.core.security import AuthContext
from session_export.schemas.audit import (
    AuditLogEntryResponse,
    CurrentUserResponse,
    PaginatedAuditLogResponse,
)
from session_export.schemas.common import PaginationMeta
from session_export.services.audit_service import query_audit_logs

admin_router = APIRouter(prefix="/admin", tags=["admin"])


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


@admin_router.get("/current-user", response_model=CurrentUserResponse)
async def current_user(
    auth_context: AuthContext = Depends(require_admin),
) -> CurrentUserResponse:
    """Return the authenticated admin."""
    return CurrentUserResponse(
        id=auth_context.actor_id,
        tenant_id=auth_context.tenant_id,
        roles=list(auth_context.roles),
    )


@admin_router.get("/export-audit-log", response_model=PaginatedAuditLogResponse)
async def export_audit_log(
    tenant_id: str | None = Query(None),
    actor_id: str | None = Query(None),
    status_filter: str | None = Query(None, alias="status"),
    date_start: datetime | None = Query(None),
    date_end: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    _admin: AuthContext = Depends(require_admin),
    container: ExportContainer = Depends(get_export_container),
) -> PaginatedAuditLogResponse:
    """Query the export audit trail (admin only)."""
    entries, total = await query_audit_logs(
        container.audit_log,
        tenant_id=tenant_id,
        actor_id=actor_id,
        status=status_filter,
        date_start=_as_utc(date_start),
        date_end=_as_utc(date_end),
        page=page,
        page_size=page_size,
    )
    return PaginatedAuditLogResponse(
        items=[AuditLogEntryResponse.model_validate(e) for e in entries],
        pagination=PaginationMeta(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=(total + page_size - 1) // page_size,
        ),
    )

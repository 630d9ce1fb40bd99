"""AuditLogEntry model for the append-only export audit trail."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable record of one export lifecycle transition. Write-only (no updates or deletes).

    ``status`` is the coarse job or delivery state, ``status_detail`` the
    fine-grained reason (e.g. ``synchronous_export_ready``).
    """

    job_id: str
    tenant_id: str
    status: str
    status_detail: str
    actor_id: str | None = None
    filters: dict[str, Any] | None = None
    record_count: int | None = None
    delivery_target: str | None = None
    attempts: int | None = None
    error: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
    recorded_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def occurred_at(self) -> datetime:
        """Best timestamp for reporting: created, then completed, then recorded."""
        return self.created_at or self.completed_at or self.recorded_at

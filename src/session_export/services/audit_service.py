"""Audit log query service.

Backs the admin export audit report: filtering and pagination over the
append-only export audit trail.
"""

from datetime import datetime

from session_export.core.errors import ValidationError
from session_export.models.audit_log import AuditLogEntry
from session_export.repositories.audit import AuditLogRepository


async def query_audit_logs(
    repository: AuditLogRepository,
    *,
    tenant_id: str | None = None,
    actor_id: str | None = None,
    status: str | None = None,
    date_start: datetime | None = None,
    date_end: datetime | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[AuditLogEntry], int]:
    """Query audit entries with optional filters.

    Args:
        repository: The audit trail to read.
        tenant_id: Filter by tenant.
        actor_id: Filter by acting user.
        status: Filter by coarse status (e.g. ``ready``, ``delivery_failed``).
        date_start: Only entries that occurred at or after this time.
        date_end: Only entries that occurred at or before this time.
        page: Page number (1-based).
        page_size: Items per page.

    Returns:
        Tuple of (entries newest first, total count).

    Raises:
        ValidationError: If the paging arguments or date range are invalid.
    """
    if page < 1 or page_size < 1:
        msg = "page and page_size must be positive"
        raise ValidationError(msg)
    if date_start and date_end and date_start > date_end:
        msg = "date_start must not be after date_end"
        raise ValidationError(msg, {"date_start": "after date_end"})

    entries = await repository.list_entries()

    if tenant_id is not None:
        entries = [e for e in entries if e.tenant_id == tenant_id]
    if actor_id is not None:
        entries = [e for e in entries if e.actor_id == actor_id]
    if status is not None:
        entries = [e for e in entries if e.status == status]
    if date_start is not None:
        entries = [e for e in entries if e.occurred_at >= date_start]
    if date_end is not None:
        entries = [e for e in entries if e.occurred_at <= date_end]

    total = len(entries)
    entries.sort(key=lambda e: e.occurred_at, reverse=True)
    offset = (page - 1) * page_size
    return entries[offset : offset + page_size], total

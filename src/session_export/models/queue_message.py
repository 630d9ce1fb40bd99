"""QueueMessage model — the only datum crossing the delivery queue boundary."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from session_export.schemas.export import ExportFilters


@dataclass(frozen=True)
class QueueMessage:
    """A queued export awaiting background processing."""

    job_id: str
    tenant_id: str
    filters: ExportFilters
    actor_id: str | None
    enqueued_at: datetime

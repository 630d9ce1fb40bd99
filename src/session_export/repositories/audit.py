"""Audit trail storage protocol and in-memory implementation."""

from typing import Protocol

from session_export.models.audit_log import AuditLogEntry


class AuditLogRepository(Protocol):
    """Protocol for the append-only audit trail."""

    async def record(self, entry: AuditLogEntry) -> AuditLogEntry: ...

    async def list_entries(self) -> list[AuditLogEntry]: ...


class InMemoryAuditLogRepository:
    """Append-only audit trail held in process memory."""

    def __init__(self) -> None:
        self._entries: list[AuditLogEntry] = []

    async def record(self, entry: AuditLogEntry) -> AuditLogEntry:
        self._entries.append(entry)
        return entry

    async def list_entries(self) -> list[AuditLogEntry]:
        """Return a snapshot of all entries in recording order."""
        return list(self._entries)

    def for_job(self, job_id: str) -> list[AuditLogEntry]:
        return [e for e in self._entries if e.job_id == job_id]

    def __len__(self) -> int:
        return len(self._entries)

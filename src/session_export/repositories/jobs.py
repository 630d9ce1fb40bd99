"""Export job storage protocol and in-memory implementation."""

import copy
import dataclasses
from typing import Any, Protocol

from session_export.models.export_job import ExportJob

_JOB_FIELDS = frozenset(f.name for f in dataclasses.fields(ExportJob))


class JobRepository(Protocol):
    """Protocol for export job persistence."""

    async def create(self, job: ExportJob) -> ExportJob: ...

    async def update(self, job_id: str, tenant_id: str, **changes: Any) -> ExportJob: ...

    async def find_by_id(self, tenant_id: str, job_id: str) -> ExportJob | None: ...


class InMemoryJobRepository:
    """Job store keyed by ``(tenant_id, job_id)``.

    Stands in for a database table. Jobs are copied on the way in and out so
    callers cannot mutate stored state without going through ``update``.
    """

    def __init__(self) -> None:
        self._jobs: dict[tuple[str, str], ExportJob] = {}

    async def create(self, job: ExportJob) -> ExportJob:
        self._jobs[(job.tenant_id, job.job_id)] = copy.copy(job)
        return copy.copy(job)

    async def update(self, job_id: str, tenant_id: str, **changes: Any) -> ExportJob:
        """Apply field changes to a stored job.

        Raises:
            KeyError: If the job does not exist for this tenant.
            AttributeError: If a change names an unknown field.
        """
        job = self._jobs[(tenant_id, job_id)]
        unknown = set(changes) - _JOB_FIELDS
        if unknown:
            msg = f"Unknown ExportJob fields: {sorted(unknown)}"
            raise AttributeError(msg)
        for name, value in changes.items():
            setattr(job, name, value)
        return copy.copy(job)

    async def find_by_id(self, tenant_id: str, job_id: str) -> ExportJob | None:
        job = self._jobs.get((tenant_id, job_id))
        return copy.copy(job) if job is not None else None

    def __len__(self) -> int:
        return len(self._jobs)

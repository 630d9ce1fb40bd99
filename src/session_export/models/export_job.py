"""ExportJob model — tracks a tenant export through its lifecycle."""

import enum
from dataclasses import dataclass
from datetime import datetime


class JobStatus(enum.StrEnum):
    """Status of an export job.

    Synchronous exports are created directly as COMPLETED; asynchronous
    exports move QUEUED -> PROCESSING -> READY or FAILED.
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    READY = "ready"
    FAILED = "failed"


# Statuses that carry a download URL
FINISHED_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.READY})


class DeliveryType(enum.StrEnum):
    """How a finished artifact reaches the requester."""

    IMMEDIATE = "immediate"
    WEBHOOK = "webhook"


class DeliveryStatus(enum.StrEnum):
    """Outcome of webhook delivery for a job."""

    NOT_APPLICABLE = "not_applicable"
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass
class ExportJob:
    """An export request and its processing state.

    Mutated only by the export service; other components refer to jobs by ID.
    """

    job_id: str
    tenant_id: str
    status: JobStatus
    format: str
    delivery_type: DeliveryType
    created_at: datetime
    delivery_target: str | None = None
    delivery_schedule: str | None = None
    delivery_status: DeliveryStatus = DeliveryStatus.NOT_APPLICABLE
    delivery_attempts: int = 0
    delivery_last_attempt_at: datetime | None = None
    record_count: int = 0
    download_url: str | None = None
    artifact_path: str | None = None
    eta_seconds: int | None = None
    estimated_count: int | None = None
    failure_reason: str | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES


@dataclass(frozen=True)
class JobStatusView:
    """Read-only projection of an ExportJob returned to callers."""

    job_id: str
    status: JobStatus
    format: str
    delivery_type: DeliveryType
    delivery_status: DeliveryStatus
    record_count: int
    download_url: str | None
    eta_seconds: int | None
    failure_reason: str | None
    updated_at: datetime


@dataclass(frozen=True)
class ExportSubmission:
    """Result of submitting or processing an export.

    ``download_url`` and ``record_count`` are set for ready exports,
    ``eta_seconds`` for queued ones.
    """

    status: str
    job_id: str
    download_url: str | None = None
    record_count: int | None = None
    eta_seconds: int | None = None

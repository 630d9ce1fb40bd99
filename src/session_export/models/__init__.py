"""Domain model registry for export jobs, audit entries, and queue messages."""

from session_export.models.audit_log import AuditLogEntry
from session_export.models.export_job import (
    FINISHED_STATUSES,
    DeliveryStatus,
    DeliveryType,
    ExportJob,
    ExportSubmission,
    JobStatus,
    JobStatusView,
)
from session_export.models.queue_message import QueueMessage

__all__ = [
    "FINISHED_STATUSES",
    "AuditLogEntry",
    "DeliveryStatus",
    "DeliveryType",
    "ExportJob",
    "ExportSubmission",
    "JobStatus",
    "JobStatusView",
    "QueueMessage",
]

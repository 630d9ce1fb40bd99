"""Collaborator protocols and in-memory reference implementations."""

from session_export.repositories.analytics import AnalyticsRepository, DatasetAnalyticsRepository, SessionEstimate
from session_export.repositories.audit import AuditLogRepository, InMemoryAuditLogRepository
from session_export.repositories.jobs import InMemoryJobRepository, JobRepository
from session_export.repositories.schedules import InMemoryScheduler, ScheduledDelivery, Scheduler

__all__ = [
    "AnalyticsRepository",
    "AuditLogRepository",
    "DatasetAnalyticsRepository",
    "InMemoryAuditLogRepository",
    "InMemoryJobRepository",
    "InMemoryScheduler",
    "JobRepository",
    "ScheduledDelivery",
    "Scheduler",
    "SessionEstimate",
]

"""Export pipeline wiring.

Builds the export collaborators from Settings and keeps the process-wide
instance used by the API and CLI, with init/get/dispose lifecycle helpers.
"""

from dataclasses import dataclass
from pathlib import Path

import httpx

from session_export.core.config import Settings
from session_export.core.queue import InMemoryDeliveryQueue
from session_export.lib.artifacts import ArtifactStore
from session_export.lib.webhooks import StaticSecretProvider, WebhookDispatcher
from session_export.repositories.analytics import DatasetAnalyticsRepository
from session_export.repositories.audit import InMemoryAuditLogRepository
from session_export.repositories.jobs import InMemoryJobRepository
from session_export.repositories.schedules import InMemoryScheduler
from session_export.services.export_service import ExportJobService
from session_export.services.worker_service import ExportWorkerRuntime


@dataclass
class ExportContainer:
    """All collaborators of one export pipeline."""

    settings: Settings
    analytics: DatasetAnalyticsRepository
    artifacts: ArtifactStore
    audit_log: InMemoryAuditLogRepository
    jobs: InMemoryJobRepository
    queue: InMemoryDeliveryQueue
    scheduler: InMemoryScheduler
    dispatcher: WebhookDispatcher
    job_service: ExportJobService
    worker: ExportWorkerRuntime


_container: ExportContainer | None = None


def build_container(
    settings: Settings,
    *,
    analytics: DatasetAnalyticsRepository | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ExportContainer:
    """Wire a complete export pipeline from settings.

    Args:
        settings: Application settings.
        analytics: Analytics source; loaded from ``settings.analytics_dataset``
            (or left empty) when omitted.
        http_client: Shared client for webhook delivery; one is created per
            delivery when omitted.

    Returns:
        A new, unstarted ExportContainer.
    """
    if analytics is None:
        if settings.analytics_dataset:
            analytics = DatasetAnalyticsRepository.from_file(Path(settings.analytics_dataset))
        else:
            analytics = DatasetAnalyticsRepository([])

    artifacts = ArtifactStore(
        Path(settings.artifact_dir),
        settings.signed_url_base,
        settings.artifact_signing_secret,
        ttl_seconds=settings.artifact_ttl_seconds,
    )
    audit_log = InMemoryAuditLogRepository()
    jobs = InMemoryJobRepository()
    queue = InMemoryDeliveryQueue()
    scheduler = InMemoryScheduler()
    # No audit repository: the job service records delivery outcomes itself.
    dispatcher = WebhookDispatcher(
        secret_provider=StaticSecretProvider(settings.webhook_default_secret, settings.webhook_tenant_secrets),
        http_client=http_client,
        max_attempts=settings.webhook_max_attempts,
        backoff_ms=settings.webhook_backoff_ms,
        timeout=settings.webhook_timeout,
    )
    job_service = ExportJobService(
        analytics_repository=analytics,
        artifact_store=artifacts,
        audit_log_repository=audit_log,
        job_repository=jobs,
        queue=queue,
        webhook_dispatcher=dispatcher,
        scheduler=scheduler,
        sync_record_limit=settings.sync_record_limit,
        sync_duration_ms=settings.sync_duration_ms,
    )
    return ExportContainer(
        settings=settings,
        analytics=analytics,
        artifacts=artifacts,
        audit_log=audit_log,
        jobs=jobs,
        queue=queue,
        scheduler=scheduler,
        dispatcher=dispatcher,
        job_service=job_service,
        worker=ExportWorkerRuntime(queue, job_service),
    )


def init_container(settings: Settings, **kwargs: object) -> ExportContainer:
    """Build and store the process-wide container.

    Args:
        settings: Application settings.
        **kwargs: Passed to :func:`build_container`.

    Returns:
        The created container.
    """
    global _container  # noqa: PLW0603
    _container = build_container(settings, **kwargs)  # type: ignore[arg-type]
    return _container


def get_container() -> ExportContainer:
    """Return the process-wide container.

    Raises:
        RuntimeError: If the container has not been initialized.
    """
    if _container is None:
        msg = "Export container not initialized. Call init_container() first."
        raise RuntimeError(msg)
    return _container


async def dispose_container() -> None:
    """Stop the worker, let queued work finish, and drop the container."""
    global _container  # noqa: PLW0603
    if _container is not None:
        _container.worker.stop()
        await _container.queue.join()
        _container = None

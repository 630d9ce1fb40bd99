"""Export service — orchestrates tenant session exports.

Decides whether an export runs inline or in the background, drives the job
state machine, and hands finished artifacts to delivery (webhook now, a
recurring schedule, or nothing for immediate downloads). Every transition is
written to the audit trail.
"""

import math
import secrets
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from session_export.core.errors import ConfigurationError, ValidationError
from session_export.core.logging import job_logger
from session_export.core.queue import DeliveryQueue
from session_export.core.security import AuthContext
from session_export.lib.artifacts import Artifact, ArtifactStore
from session_export.lib.webhooks import WebhookDispatcher
from session_export.models.audit_log import AuditLogEntry
from session_export.models.export_job import (
    DeliveryStatus,
    DeliveryType,
    ExportJob,
    ExportSubmission,
    JobStatus,
    JobStatusView,
)
from session_export.models.queue_message import QueueMessage
from session_export.repositories.analytics import AnalyticsRepository, SessionEstimate
from session_export.repositories.audit import AuditLogRepository
from session_export.repositories.jobs import JobRepository
from session_export.repositories.schedules import Scheduler
from session_export.schemas.export import DeliverySpec, ExportFilters

DEFAULT_SYNC_LIMIT = 10_000
DEFAULT_SYNC_DURATION_MS = 5_000

MAX_ETA_SECONDS = 300
ETA_SECONDS_PER_BATCH = 30


def _utcnow() -> datetime:
    return datetime.now(UTC)


def build_job_id(now: datetime) -> str:
    """Build a lexicographically time-ordered job ID.

    Format: ``exp_<YYYYMMDDHHMMSSmmm>_<8 hex chars>`` in UTC.
    """
    now = now.astimezone(UTC)
    stamp = f"{now:%Y%m%d%H%M%S}{now.microsecond // 1000:03d}"
    return f"exp_{stamp}_{secrets.token_hex(4)}"


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _session_to_dict(session: dict[str, Any]) -> dict[str, Any]:
    """Map a raw gameplay session onto the stable export shape."""
    return {
        "session_id": _first(session, "session_id", "sessionId"),
        "player_id": _first(session, "player_id", "playerId"),
        "tenant_id": _first(session, "tenant_id", "tenantId"),
        "mode": _first(session, "mode", "game_mode", "gameMode"),
        "wave_reached": _first(session, "wave_reached", "waveReached"),
        "duration_seconds": _first(session, "duration_seconds", "durationSeconds"),
        "total_score": _first(session, "total_score", "totalScore"),
        "resources_collected": _first(session, "resources_collected", "resourcesCollected"),
        "dominant_element_used": _first(
            session, "dominant_element_used", "dominantElementUsed", "dominant_element", "dominantElement"
        ),
        "skills_usage": _first(session, "skills_usage", "skillsUsage", "skills") or [],
        "defeat_cause": _first(session, "defeat_cause", "defeatCause"),
        "started_at": _first(session, "started_at", "startedAt"),
        "ended_at": _first(session, "ended_at", "endedAt"),
    }


def normalize_sessions(raw_sessions: object) -> list[dict[str, Any]]:
    """Normalize raw sessions; anything other than a list yields no records."""
    if not isinstance(raw_sessions, list):
        return []
    return [_session_to_dict(s) for s in raw_sessions if isinstance(s, dict)]


class ExportJobService:
    """Coordinates analytics, artifact storage, queueing, delivery, and audit.

    The service is the only writer of export job records.

    Args:
        analytics_repository: Estimates and fetches gameplay sessions.
        artifact_store: Persists rendered exports.
        audit_log_repository: Append-only audit trail.
        job_repository: Export job store.
        queue: Queue for exports too large to run inline.
        webhook_dispatcher: Needed for one-off webhook delivery.
        scheduler: Needed for recurring (cron) webhook delivery.
        clock: Returns the current UTC time.
        sync_record_limit: Largest estimated count exported inline.
        sync_duration_ms: Largest estimated duration exported inline.

    Raises:
        ConfigurationError: If a required collaborator is missing.
    """

    def __init__(
        self,
        *,
        analytics_repository: AnalyticsRepository,
        artifact_store: ArtifactStore,
        audit_log_repository: AuditLogRepository,
        job_repository: JobRepository,
        queue: DeliveryQueue,
        webhook_dispatcher: WebhookDispatcher | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], datetime] = _utcnow,
        sync_record_limit: int = DEFAULT_SYNC_LIMIT,
        sync_duration_ms: float = DEFAULT_SYNC_DURATION_MS,
    ) -> None:
        required = {
            "analytics_repository": analytics_repository,
            "artifact_store": artifact_store,
            "audit_log_repository": audit_log_repository,
            "job_repository": job_repository,
            "queue": queue,
        }
        missing = [name for name, dep in required.items() if dep is None]
        if missing:
            msg = f"ExportJobService requires: {', '.join(missing)}"
            raise ConfigurationError(msg)
        if sync_record_limit <= 0 or sync_duration_ms <= 0:
            msg = "sync thresholds must be positive"
            raise ConfigurationError(msg)

        self._analytics = analytics_repository
        self._artifacts = artifact_store
        self._audit = audit_log_repository
        self._jobs = job_repository
        self._queue = queue
        self._dispatcher = webhook_dispatcher
        self._scheduler = scheduler
        self._clock = clock
        self.sync_record_limit = sync_record_limit
        self.sync_duration_ms = sync_duration_ms

    # -- decision policy -------------------------------------------------

    def should_run_synchronously(self, estimate: SessionEstimate) -> bool:
        """Inline iff no known bound is exceeded."""
        if estimate.count is not None and estimate.count > self.sync_record_limit:
            return False
        return not (
            estimate.estimated_duration_ms is not None and estimate.estimated_duration_ms > self.sync_duration_ms
        )

    def estimate_eta_seconds(self, estimated_count: int | None) -> int:
        """30 seconds per sync-limit-sized batch, capped at 300."""
        count = estimated_count if estimated_count is not None else self.sync_record_limit + 1
        batches = max(1, math.ceil(count / self.sync_record_limit))
        return min(MAX_ETA_SECONDS, batches * ETA_SECONDS_PER_BATCH)

    # -- submission ------------------------------------------------------

    async def create_export_job(
        self,
        *,
        tenant_id: str,
        filters: ExportFilters,
        auth_context: AuthContext | None = None,
    ) -> ExportSubmission:
        """Submit an export, running it inline when it is small enough.

        Args:
            tenant_id: Requesting tenant.
            filters: Validated export filters.
            auth_context: Authenticated caller.

        Returns:
            ``ready`` with a download URL, or ``queued`` with an ETA.

        Raises:
            ValidationError: If tenant_id or filters is missing.
        """
        if not tenant_id:
            msg = "tenant_id is required"
            raise ValidationError(msg)
        if filters is None:
            msg = "filters are required"
            raise ValidationError(msg)

        actor_id = auth_context.actor_id if auth_context else None
        estimate = await self._analytics.estimate_session_count(tenant_id, filters)
        job_id = build_job_id(self._clock())

        if self.should_run_synchronously(estimate):
            return await self._run_synchronously(tenant_id, filters, actor_id, job_id, estimate)
        return await self._enqueue(tenant_id, filters, actor_id, job_id, estimate)

    async def _run_synchronously(
        self,
        tenant_id: str,
        filters: ExportFilters,
        actor_id: str | None,
        job_id: str,
        estimate: SessionEstimate,
    ) -> ExportSubmission:
        log = job_logger(job_id, tenant_id)
        log.info(f"Running export {job_id} synchronously (estimated {estimate.count} records)")

        records = await self._fetch_records(tenant_id, filters)
        artifact = await self._store(tenant_id, job_id, filters, records, actor_id)
        delivery = filters.delivery

        await self._jobs.create(
            ExportJob(
                job_id=job_id,
                tenant_id=tenant_id,
                status=JobStatus.COMPLETED,
                format=str(filters.format),
                delivery_type=delivery.type,
                delivery_target=delivery.webhook_url,
                delivery_schedule=delivery.schedule,
                delivery_status=_initial_delivery_status(delivery),
                record_count=len(records),
                download_url=artifact.download_url,
                artifact_path=artifact.artifact_path,
                eta_seconds=0,
                estimated_count=estimate.count if estimate.count is not None else len(records),
                created_at=artifact.created_at,
                updated_at=artifact.completed_at,
                completed_at=artifact.completed_at,
            )
        )
        await self._audit.record(
            AuditLogEntry(
                job_id=job_id,
                tenant_id=tenant_id,
                actor_id=actor_id,
                status=JobStatus.COMPLETED,
                status_detail="synchronous_export_ready",
                filters=filters.to_audit_dict(),
                record_count=len(records),
                created_at=artifact.created_at,
                completed_at=artifact.completed_at,
            )
        )

        await self._handle_delivery(tenant_id, job_id, filters, artifact.download_url, len(records))

        return ExportSubmission(
            status=JobStatus.READY,
            job_id=job_id,
            download_url=artifact.download_url,
            record_count=len(records),
        )

    async def _enqueue(
        self,
        tenant_id: str,
        filters: ExportFilters,
        actor_id: str | None,
        job_id: str,
        estimate: SessionEstimate,
    ) -> ExportSubmission:
        now = self._clock()
        eta_seconds = self.estimate_eta_seconds(estimate.count)
        delivery = filters.delivery

        await self._jobs.create(
            ExportJob(
                job_id=job_id,
                tenant_id=tenant_id,
                status=JobStatus.QUEUED,
                format=str(filters.format),
                delivery_type=delivery.type,
                delivery_target=delivery.webhook_url,
                delivery_schedule=delivery.schedule,
                delivery_status=_initial_delivery_status(delivery),
                eta_seconds=eta_seconds,
                estimated_count=estimate.count,
                created_at=now,
                updated_at=now,
            )
        )
        await self._audit.record(
            AuditLogEntry(
                job_id=job_id,
                tenant_id=tenant_id,
                actor_id=actor_id,
                status=JobStatus.QUEUED,
                status_detail="async_export_enqueued",
                filters=filters.to_audit_dict(),
                record_count=0,
                created_at=now,
            )
        )
        await self._queue.enqueue(
            QueueMessage(job_id=job_id, tenant_id=tenant_id, filters=filters, actor_id=actor_id, enqueued_at=now)
        )

        job_logger(job_id, tenant_id).info(f"Queued export {job_id} (eta {eta_seconds}s)")
        return ExportSubmission(status=JobStatus.QUEUED, job_id=job_id, eta_seconds=eta_seconds)

    # -- background processing -------------------------------------------

    async def process_queued_job(
        self,
        *,
        job_id: str,
        tenant_id: str,
        filters: ExportFilters,
        actor_id: str | None = None,
    ) -> ExportSubmission:
        """Process a queued export: ``queued -> processing -> ready``.

        On failure the job is marked ``failed`` and audited, then the error
        is re-raised. Failed jobs are never re-enqueued.

        Raises:
            ValidationError: If job_id, tenant_id, or filters is missing.
        """
        if not job_id:
            msg = "job_id is required"
            raise ValidationError(msg)
        if not tenant_id:
            msg = "tenant_id is required"
            raise ValidationError(msg)
        if filters is None:
            msg = "filters are required"
            raise ValidationError(msg)

        log = job_logger(job_id, tenant_id)
        processing_at = self._clock()
        await self._jobs.update(job_id, tenant_id, status=JobStatus.PROCESSING, updated_at=processing_at)
        await self._audit.record(
            AuditLogEntry(
                job_id=job_id,
                tenant_id=tenant_id,
                actor_id=actor_id,
                status=JobStatus.PROCESSING,
                status_detail="async_export_processing",
                created_at=processing_at,
            )
        )
        log.info(f"Processing queued export {job_id}")

        try:
            records = await self._fetch_records(tenant_id, filters)
            artifact = await self._store(tenant_id, job_id, filters, records, actor_id)
            await self._jobs.update(
                job_id,
                tenant_id,
                status=JobStatus.READY,
                download_url=artifact.download_url,
                record_count=len(records),
                artifact_path=artifact.artifact_path,
                completed_at=artifact.completed_at,
                updated_at=artifact.completed_at,
            )
            await self._audit.record(
                AuditLogEntry(
                    job_id=job_id,
                    tenant_id=tenant_id,
                    actor_id=actor_id,
                    status=JobStatus.READY,
                    status_detail="async_export_ready",
                    record_count=len(records),
                    completed_at=artifact.completed_at,
                )
            )
        except Exception as e:
            failed_at = self._clock()
            await self._jobs.update(
                job_id,
                tenant_id,
                status=JobStatus.FAILED,
                failure_reason=str(e),
                download_url=None,
                updated_at=failed_at,
            )
            await self._audit.record(
                AuditLogEntry(
                    job_id=job_id,
                    tenant_id=tenant_id,
                    actor_id=actor_id,
                    status=JobStatus.FAILED,
                    status_detail="async_export_failed",
                    error=str(e),
                    created_at=failed_at,
                )
            )
            log.exception(f"Export job {job_id} failed")
            raise

        log.info(f"Export job {job_id} ready: {len(records)} records")
        await self._handle_delivery(tenant_id, job_id, filters, artifact.download_url, len(records))

        return ExportSubmission(
            status=JobStatus.READY,
            job_id=job_id,
            download_url=artifact.download_url,
            record_count=len(records),
        )

    # -- reads -----------------------------------------------------------

    async def get_job_status(self, *, tenant_id: str, job_id: str) -> JobStatusView | None:
        """Get a tenant's view of a job, or None if the tenant has no such job.

        Raises:
            ValidationError: If tenant_id or job_id is missing.
        """
        if not tenant_id:
            msg = "tenant_id is required"
            raise ValidationError(msg)
        if not job_id:
            msg = "job_id is required"
            raise ValidationError(msg)

        job = await self._jobs.find_by_id(tenant_id, job_id)
        if job is None:
            return None

        return JobStatusView(
            job_id=job.job_id,
            status=job.status,
            format=job.format,
            delivery_type=job.delivery_type,
            delivery_status=job.delivery_status,
            record_count=job.record_count or 0,
            download_url=job.download_url if job.is_finished else None,
            eta_seconds=job.eta_seconds,
            failure_reason=job.failure_reason,
            updated_at=job.updated_at or job.completed_at or job.created_at or self._clock(),
        )

    # -- helpers ---------------------------------------------------------

    async def _fetch_records(self, tenant_id: str, filters: ExportFilters) -> list[dict[str, Any]]:
        sessions = await self._analytics.fetch_sessions(tenant_id, filters)
        return normalize_sessions(sessions)

    async def _store(
        self,
        tenant_id: str,
        job_id: str,
        filters: ExportFilters,
        records: list[dict[str, Any]],
        actor_id: str | None,
    ) -> Artifact:
        return await self._artifacts.store_artifact(
            tenant_id=tenant_id,
            job_id=job_id,
            format=str(filters.format),
            records=records,
            filters=filters.to_audit_dict(),
            actor_id=actor_id,
        )

    async def _handle_delivery(
        self,
        tenant_id: str,
        job_id: str,
        filters: ExportFilters,
        download_url: str,
        record_count: int,
    ) -> None:
        """Deliver a finished export according to its DeliverySpec.

        Raises:
            ConfigurationError: If the needed scheduler or dispatcher is not configured.
        """
        delivery = filters.delivery
        if delivery is None or delivery.type != DeliveryType.WEBHOOK:
            return

        generated_at = self._clock()
        payload = {
            "job_id": job_id,
            "tenant_id": tenant_id,
            "download_url": download_url,
            "record_count": record_count,
            "filters": filters.to_audit_dict(),
            "generated_at": generated_at.isoformat(),
        }

        if delivery.schedule:
            if self._scheduler is None:
                msg = "scheduler is required for recurring webhook delivery"
                raise ConfigurationError(msg)
            await self._scheduler.schedule(
                tenant_id=tenant_id,
                job_id=job_id,
                cron=delivery.schedule,
                webhook_url=delivery.webhook_url,
                payload=payload,
            )
            await self._audit.record(
                AuditLogEntry(
                    job_id=job_id,
                    tenant_id=tenant_id,
                    status="scheduled",
                    status_detail="webhook_scheduled",
                    delivery_target=delivery.webhook_url,
                    created_at=generated_at,
                )
            )
            return

        if self._dispatcher is None:
            msg = "webhook dispatcher is required for webhook delivery"
            raise ConfigurationError(msg)

        result = await self._dispatcher.dispatch(
            tenant_id=tenant_id,
            job_id=job_id,
            url=delivery.webhook_url,
            payload=payload,
        )

        await self._jobs.update(
            job_id,
            tenant_id,
            delivery_status=DeliveryStatus.DELIVERED if result.success else DeliveryStatus.FAILED,
            delivery_attempts=result.attempts,
            delivery_last_attempt_at=result.last_attempt_at,
        )
        await self._audit.record(
            AuditLogEntry(
                job_id=job_id,
                tenant_id=tenant_id,
                status="delivered" if result.success else "delivery_failed",
                status_detail="webhook_delivered" if result.success else "webhook_failed",
                delivery_target=delivery.webhook_url,
                attempts=result.attempts,
                created_at=result.last_attempt_at,
            )
        )
        if not result.success and result.error:
            await self._audit.record(
                AuditLogEntry(
                    job_id=job_id,
                    tenant_id=tenant_id,
                    status="delivery_failed",
                    status_detail="webhook_failure_detail",
                    delivery_target=delivery.webhook_url,
                    created_at=result.last_attempt_at,
                    metadata={"message": result.error},
                )
            )
            job_logger(job_id, tenant_id).warning(f"Webhook delivery for {job_id} failed: {result.error}")


def _initial_delivery_status(delivery: DeliverySpec) -> DeliveryStatus:
    if delivery.type == DeliveryType.WEBHOOK:
        return DeliveryStatus.PENDING
    return DeliveryStatus.NOT_APPLICABLE

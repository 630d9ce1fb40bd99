"""Worker service — consumes queued exports in the background."""

from session_export.core.errors import ValidationError
from session_export.core.logging import job_logger
from session_export.core.queue import DeliveryQueue, Unsubscribe
from session_export.models.export_job import ExportSubmission
from session_export.models.queue_message import QueueMessage
from session_export.services.export_service import ExportJobService


class ExportQueueWorker:
    """Turns a queue message into a ``process_queued_job`` call."""

    def __init__(self, job_service: ExportJobService) -> None:
        self._job_service = job_service

    async def handle(self, message: QueueMessage) -> ExportSubmission:
        """Process one queued export.

        Raises:
            ValidationError: If the message lacks job_id, tenant_id, or filters.
        """
        if message is None or not message.job_id:
            msg = "queue message is missing job_id"
            raise ValidationError(msg)
        if not message.tenant_id:
            msg = "queue message is missing tenant_id"
            raise ValidationError(msg)
        if message.filters is None:
            msg = "queue message is missing filters"
            raise ValidationError(msg)

        return await self._job_service.process_queued_job(
            job_id=message.job_id,
            tenant_id=message.tenant_id,
            filters=message.filters,
            actor_id=message.actor_id,
        )


class ExportWorkerRuntime:
    """Subscribes an ExportQueueWorker to a queue.

    Handler failures are logged with job and tenant context and the message
    counts as consumed. There is no redelivery.
    """

    def __init__(self, queue: DeliveryQueue, job_service: ExportJobService) -> None:
        self._queue = queue
        self._worker = ExportQueueWorker(job_service)
        self._unsubscribe: Unsubscribe | None = None

    @property
    def running(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        """Begin consuming. Calling start twice is a no-op."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._queue.subscribe(self._handle)

    def stop(self) -> None:
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None

    async def _handle(self, message: QueueMessage) -> None:
        try:
            await self._worker.handle(message)
        except Exception as e:
            job_logger(getattr(message, "job_id", None), getattr(message, "tenant_id", None)).error(
                f"Export worker failed for job {getattr(message, 'job_id', None)}: {e}"
            )

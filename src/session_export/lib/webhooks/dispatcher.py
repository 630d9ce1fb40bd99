"""Signed webhook delivery with bounded retries and exponential backoff."""

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import httpx
from loguru import logger

from session_export.core.errors import ValidationError
from session_export.core.security import sign_webhook_body
from session_export.lib.webhooks.secrets import resolve_secret
from session_export.lib.webhooks.types import DeliveryResult
from session_export.models.audit_log import AuditLogEntry

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_MS = 750
DEFAULT_TIMEOUT = 10.0

SIGNATURE_HEADER = "X-Export-Signature"
TIMESTAMP_HEADER = "X-Export-Timestamp"
TENANT_HEADER = "X-Export-Tenant"
JOB_HEADER = "X-Export-Job"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class WebhookDispatcher:
    """POSTs JSON payloads to tenant webhooks, signing every attempt.

    Each attempt is signed with ``HMAC-SHA256(secret, "{timestamp}:{body}")``
    using the tenant's secret. Delivery failures are reported through the
    returned DeliveryResult, never raised.

    Args:
        secret_provider: Resolves a tenant ID to its HMAC secret.
        http_client: Optional shared client; a short-lived one is created
            per dispatch otherwise.
        audit_repository: When given, terminal outcomes are also written to
            the audit trail. Leave unset when the caller owns delivery audit.
        clock: Returns the current UTC time.
        sleep: Awaitable sleep used for backoff.
        max_attempts: Attempts before giving up.
        backoff_ms: Delay after the first failure; doubled each retry.
        timeout: Per-request timeout in seconds for self-created clients.
    """

    def __init__(
        self,
        *,
        secret_provider: Any,
        http_client: httpx.AsyncClient | None = None,
        audit_repository: Any | None = None,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_ms: int = DEFAULT_BACKOFF_MS,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)
        self._secret_provider = secret_provider
        self._http_client = http_client
        self._audit_repository = audit_repository
        self._clock = clock
        self._sleep = sleep
        self._max_attempts = max_attempts
        self._backoff_ms = backoff_ms
        self._timeout = timeout

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        return self._backoff_ms * (2 ** (attempt - 1)) / 1000

    async def dispatch(
        self,
        *,
        tenant_id: str,
        job_id: str,
        url: str,
        payload: dict[str, Any] | None,
    ) -> DeliveryResult:
        """Deliver a payload to a webhook URL.

        Args:
            tenant_id: Tenant whose secret signs the request.
            job_id: Export job the payload describes.
            url: Destination webhook URL.
            payload: JSON-serializable payload.

        Returns:
            DeliveryResult with success flag, attempt count, and last error.

        Raises:
            ValidationError: If tenant_id, job_id, or url is missing.
        """
        if not tenant_id:
            msg = "tenant_id is required for webhook delivery"
            raise ValidationError(msg)
        if not job_id:
            msg = "job_id is required for webhook delivery"
            raise ValidationError(msg)
        if not url:
            msg = "webhook url is required"
            raise ValidationError(msg)

        body = json.dumps(payload or {}, separators=(",", ":"), default=str)
        secret = await resolve_secret(self._secret_provider, tenant_id)

        attempts = 0
        last_attempt_at: datetime | None = None
        last_error: str | None = None

        async with self._client() as client:
            while attempts < self._max_attempts:
                attempts += 1
                last_attempt_at = self._clock()
                timestamp = last_attempt_at.isoformat()
                headers = {
                    "Content-Type": "application/json",
                    SIGNATURE_HEADER: sign_webhook_body(secret, timestamp, body),
                    TIMESTAMP_HEADER: timestamp,
                    TENANT_HEADER: tenant_id,
                    JOB_HEADER: job_id,
                }

                try:
                    response = await client.post(url, content=body, headers=headers)
                    if response.is_success:
                        logger.info(f"Webhook delivered for job {job_id} on attempt {attempts}")
                        result = DeliveryResult(success=True, attempts=attempts, last_attempt_at=last_attempt_at)
                        await self._audit(tenant_id, job_id, url, result)
                        return result
                    last_error = f"Webhook responded with status {response.status_code}"
                except httpx.HTTPError as e:
                    last_error = f"{type(e).__name__}: {e}"

                logger.warning(f"Webhook attempt {attempts}/{self._max_attempts} for job {job_id} failed: {last_error}")

                if attempts < self._max_attempts:
                    await self._sleep(self.backoff_delay(attempts))

        logger.error(f"Webhook delivery for job {job_id} exhausted {attempts} attempts")
        result = DeliveryResult(
            success=False,
            attempts=attempts,
            last_attempt_at=last_attempt_at,
            error=last_error or "Unknown webhook error",
        )
        await self._audit(tenant_id, job_id, url, result)
        return result

    async def _audit(self, tenant_id: str, job_id: str, url: str, result: DeliveryResult) -> None:
        if self._audit_repository is None:
            return
        await self._audit_repository.record(
            AuditLogEntry(
                job_id=job_id,
                tenant_id=tenant_id,
                status="delivered" if result.success else "delivery_failed",
                status_detail="webhook_delivered" if result.success else "webhook_failed",
                delivery_target=url,
                attempts=result.attempts,
                error=result.error,
                created_at=result.last_attempt_at,
            )
        )

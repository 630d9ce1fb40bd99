"""Tests for signed webhook delivery with retries."""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import httpx
import pytest

from session_export.core.errors import ValidationError
from session_export.lib.webhooks import (
    JOB_HEADER,
    SIGNATURE_HEADER,
    TENANT_HEADER,
    TIMESTAMP_HEADER,
    WebhookDispatcher,
    verify_webhook_signature,
)
from session_export.repositories.audit import InMemoryAuditLogRepository

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)
URL = "https://hooks.example.com/exports"
PAYLOAD = {"job_id": "exp_1", "tenant_id": "tenant-1", "record_count": 3}


def _dispatcher(handler, **kwargs) -> tuple[WebhookDispatcher, AsyncMock, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
    sleep = AsyncMock()
    dispatcher = WebhookDispatcher(
        secret_provider=lambda tenant_id: f"secret-{tenant_id}",
        http_client=client,
        clock=lambda: NOW,
        sleep=sleep,
        **kwargs,
    )
    return dispatcher, sleep, requests


class TestDispatch:
    """Tests for WebhookDispatcher.dispatch."""

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self) -> None:
        dispatcher, sleep, requests = _dispatcher(lambda r: httpx.Response(204))
        result = await dispatcher.dispatch(tenant_id="tenant-1", job_id="exp_1", url=URL, payload=PAYLOAD)
        assert result.success is True
        assert result.attempts == 1
        assert result.error is None
        assert result.last_attempt_at == NOW
        assert len(requests) == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_request_is_signed(self) -> None:
        dispatcher, _, requests = _dispatcher(lambda r: httpx.Response(200))
        await dispatcher.dispatch(tenant_id="tenant-1", job_id="exp_1", url=URL, payload=PAYLOAD)

        request = requests[0]
        body = request.content.decode()
        assert json.loads(body) == PAYLOAD
        assert request.headers["content-type"] == "application/json"
        assert request.headers[TENANT_HEADER] == "tenant-1"
        assert request.headers[JOB_HEADER] == "exp_1"
        assert request.headers[TIMESTAMP_HEADER] == NOW.isoformat()
        assert verify_webhook_signature(
            "secret-tenant-1", request.headers[TIMESTAMP_HEADER], body, request.headers[SIGNATURE_HEADER]
        )

    @pytest.mark.asyncio
    async def test_exhausts_attempts_on_server_error(self) -> None:
        dispatcher, sleep, requests = _dispatcher(lambda r: httpx.Response(500))
        result = await dispatcher.dispatch(tenant_id="tenant-1", job_id="exp_1", url=URL, payload=PAYLOAD)
        assert result.success is False
        assert result.attempts == 3
        assert result.error == "Webhook responded with status 500"
        assert len(requests) == 3

    @pytest.mark.asyncio
    async def test_backoff_doubles_between_attempts_only(self) -> None:
        dispatcher, sleep, _ = _dispatcher(lambda r: httpx.Response(503))
        await dispatcher.dispatch(tenant_id="tenant-1", job_id="exp_1", url=URL, payload=PAYLOAD)
        assert [call.args[0] for call in sleep.await_args_list] == [0.75, 1.5]

    @pytest.mark.asyncio
    async def test_recovers_after_failure(self) -> None:
        responses = iter([httpx.Response(502), httpx.Response(200)])
        dispatcher, sleep, requests = _dispatcher(lambda r: next(responses))
        result = await dispatcher.dispatch(tenant_id="tenant-1", job_id="exp_1", url=URL, payload=PAYLOAD)
        assert result.success is True
        assert result.attempts == 2
        assert sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_transport_error_counts_as_attempt(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        dispatcher, _, requests = _dispatcher(handler, max_attempts=2)
        result = await dispatcher.dispatch(tenant_id="tenant-1", job_id="exp_1", url=URL, payload=PAYLOAD)
        assert result.success is False
        assert result.attempts == 2
        assert "ConnectError" in result.error

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("tenant_id", "job_id", "url"),
        [("", "exp_1", URL), ("tenant-1", "", URL), ("tenant-1", "exp_1", "")],
    )
    async def test_missing_arguments_raise(self, tenant_id: str, job_id: str, url: str) -> None:
        dispatcher, _, requests = _dispatcher(lambda r: httpx.Response(200))
        with pytest.raises(ValidationError):
            await dispatcher.dispatch(tenant_id=tenant_id, job_id=job_id, url=url, payload=PAYLOAD)
        assert requests == []

    @pytest.mark.asyncio
    async def test_async_secret_provider(self) -> None:
        requests: list[httpx.Request] = []

        async def provider(tenant_id: str) -> str:
            return "async-secret"

        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: requests.append(r) or httpx.Response(200)))
        dispatcher = WebhookDispatcher(secret_provider=provider, http_client=client, clock=lambda: NOW)
        await dispatcher.dispatch(tenant_id="tenant-1", job_id="exp_1", url=URL, payload=PAYLOAD)
        request = requests[0]
        assert verify_webhook_signature(
            "async-secret", request.headers[TIMESTAMP_HEADER], request.content.decode(), request.headers[SIGNATURE_HEADER]
        )

    @pytest.mark.asyncio
    async def test_audits_outcome_when_repository_given(self) -> None:
        audit = InMemoryAuditLogRepository()
        dispatcher, _, _ = _dispatcher(lambda r: httpx.Response(500), audit_repository=audit, max_attempts=1)
        await dispatcher.dispatch(tenant_id="tenant-1", job_id="exp_1", url=URL, payload=PAYLOAD)
        entries = await audit.list_entries()
        assert [(e.status, e.status_detail) for e in entries] == [("delivery_failed", "webhook_failed")]
        assert entries[0].attempts == 1

    def test_rejects_non_positive_attempts(self) -> None:
        with pytest.raises(ValueError, match="max_attempts"):
            WebhookDispatcher(secret_provider=lambda t: "s", max_attempts=0)

"""Unit tests for the in-process delivery queue."""

import asyncio
from datetime import UTC, datetime

import pytest

from session_export.core.queue import InMemoryDeliveryQueue
from session_export.models.queue_message import QueueMessage
from session_export.schemas.export import ExportFilters


def _message(job_id: str) -> QueueMessage:
    filters = ExportFilters(
        range_start=datetime(2024, 1, 1, tzinfo=UTC),
        range_end=datetime(2024, 1, 2, tzinfo=UTC),
    )
    return QueueMessage(
        job_id=job_id,
        tenant_id="tenant-1",
        filters=filters,
        actor_id=None,
        enqueued_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


class TestInMemoryDeliveryQueue:
    """Tests for InMemoryDeliveryQueue."""

    @pytest.mark.asyncio
    async def test_messages_wait_for_subscriber(self) -> None:
        queue = InMemoryDeliveryQueue()
        await queue.enqueue(_message("exp_1"))
        await queue.join()
        assert queue.pending == 1

    @pytest.mark.asyncio
    async def test_subscribe_drains_backlog_in_order(self) -> None:
        queue = InMemoryDeliveryQueue()
        seen: list[str] = []

        async def handler(message: QueueMessage) -> None:
            seen.append(message.job_id)

        await queue.enqueue(_message("exp_1"))
        await queue.enqueue(_message("exp_2"))
        queue.subscribe(handler)
        await queue.join()
        assert seen == ["exp_1", "exp_2"]
        assert queue.pending == 0

    @pytest.mark.asyncio
    async def test_every_subscriber_receives_message(self) -> None:
        queue = InMemoryDeliveryQueue()
        first: list[str] = []
        second: list[str] = []

        async def handler_a(message: QueueMessage) -> None:
            first.append(message.job_id)

        async def handler_b(message: QueueMessage) -> None:
            second.append(message.job_id)

        queue.subscribe(handler_a)
        queue.subscribe(handler_b)
        await queue.enqueue(_message("exp_1"))
        await queue.join()
        assert first == ["exp_1"]
        assert second == ["exp_1"]

    @pytest.mark.asyncio
    async def test_handler_error_does_not_stop_drain(self) -> None:
        queue = InMemoryDeliveryQueue()
        seen: list[str] = []

        async def handler(message: QueueMessage) -> None:
            if message.job_id == "exp_1":
                raise RuntimeError("boom")
            seen.append(message.job_id)

        queue.subscribe(handler)
        await queue.enqueue(_message("exp_1"))
        await queue.enqueue(_message("exp_2"))
        await queue.join()
        assert seen == ["exp_2"]

    @pytest.mark.asyncio
    async def test_handler_never_runs_concurrently(self) -> None:
        queue = InMemoryDeliveryQueue()
        active = 0
        max_active = 0

        async def handler(message: QueueMessage) -> None:
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            if message.job_id == "exp_1":
                await queue.enqueue(_message("exp_1_child"))
            active -= 1

        queue.subscribe(handler)
        await queue.enqueue(_message("exp_1"))
        await queue.join()
        assert max_active == 1
        assert queue.pending == 0

    @pytest.mark.asyncio
    async def test_unsubscribe_is_idempotent(self) -> None:
        queue = InMemoryDeliveryQueue()
        seen: list[str] = []

        async def handler(message: QueueMessage) -> None:
            seen.append(message.job_id)

        unsubscribe = queue.subscribe(handler)
        unsubscribe()
        unsubscribe()
        await queue.enqueue(_message("exp_1"))
        await queue.join()
        assert seen == []
        assert queue.pending == 1

    def test_subscribe_requires_callable(self) -> None:
        with pytest.raises(TypeError):
            InMemoryDeliveryQueue().subscribe("not-a-handler")  # type: ignore[arg-type]

    def test_enqueue_without_running_loop_is_buffered(self) -> None:
        queue = InMemoryDeliveryQueue()
        seen: list[str] = []

        async def handler(message: QueueMessage) -> None:
            seen.append(message.job_id)

        queue.subscribe(handler)

        async def main() -> None:
            await queue.enqueue(_message("exp_1"))
            await queue.join()

        asyncio.run(main())
        assert seen == ["exp_1"]

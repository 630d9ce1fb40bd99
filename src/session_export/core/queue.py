"""Delivery queue abstraction.

Decouples export submission from background processing. The in-process
implementation buffers messages in FIFO order and drains them to every
current subscriber on the running event loop; a broker-backed queue can
replace it without service layer changes. Instances are passed explicitly;
there is no process-wide queue.
"""

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from loguru import logger

from session_export.models.queue_message import QueueMessage

MessageHandler = Callable[[QueueMessage], Awaitable[Any]]
Unsubscribe = Callable[[], None]


class DeliveryQueue(Protocol):
    """Protocol for export job queues."""

    async def enqueue(self, message: QueueMessage) -> None:
        """Add a message for background processing.

        Args:
            message: The queued export.
        """
        ...

    def subscribe(self, handler: MessageHandler) -> Unsubscribe:
        """Register a handler for queued messages.

        Args:
            handler: Coroutine function invoked once per message.

        Returns:
            A callable that removes the handler.
        """
        ...


class InMemoryDeliveryQueue:
    """In-process FIFO queue.

    Suitable for development and single-process deployments. Messages are
    delivered in enqueue order; one drain runs at a time, so a handler is
    never invoked concurrently with itself on the same queue. A handler
    error is logged and the message counts as consumed.
    """

    def __init__(self) -> None:
        self._messages: deque[QueueMessage] = deque()
        self._subscribers: list[MessageHandler] = []
        self._draining = False
        self._drain_tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of messages waiting for a subscriber."""
        return len(self._messages)

    async def enqueue(self, message: QueueMessage) -> None:
        self._messages.append(message)
        self._schedule_drain()

    def subscribe(self, handler: MessageHandler) -> Unsubscribe:
        if not callable(handler):
            msg = "handler must be callable"
            raise TypeError(msg)
        self._subscribers.append(handler)
        self._schedule_drain()

        def unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return unsubscribe

    async def join(self) -> None:
        """Wait until every scheduled drain has finished."""
        while self._drain_tasks:
            await asyncio.gather(*list(self._drain_tasks))

    def _schedule_drain(self) -> None:
        if not self._messages or not self._subscribers:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; the next enqueue drains.
            return
        task = loop.create_task(self._drain())
        self._drain_tasks.add(task)
        task.add_done_callback(self._drain_tasks.discard)

    async def _drain(self) -> None:
        if self._draining:
            return
        self._draining = True
        try:
            while self._messages and self._subscribers:
                message = self._messages.popleft()
                for handler in list(self._subscribers):
                    try:
                        await handler(message)
                    except Exception:
                        logger.exception(f"Queue handler failed for job {message.job_id}")
        finally:
            self._draining = False

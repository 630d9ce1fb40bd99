"""Recurring-delivery scheduler protocol and registry implementation.

No cron execution happens here; the registry only records what a real
scheduler would be asked to run.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol

from loguru import logger


@dataclass(frozen=True)
class ScheduledDelivery:
    """A recurring webhook delivery registration."""

    tenant_id: str
    job_id: str
    cron: str
    webhook_url: str
    payload: dict[str, Any]
    registered_at: datetime


class Scheduler(Protocol):
    """Protocol for registering recurring webhook deliveries."""

    async def schedule(
        self,
        *,
        tenant_id: str,
        job_id: str,
        cron: str,
        webhook_url: str,
        payload: dict[str, Any],
    ) -> None: ...


class InMemoryScheduler:
    """Keeps the latest registration per ``(tenant_id, job_id)``."""

    def __init__(self) -> None:
        self._registrations: dict[tuple[str, str], ScheduledDelivery] = {}

    async def schedule(
        self,
        *,
        tenant_id: str,
        job_id: str,
        cron: str,
        webhook_url: str,
        payload: dict[str, Any],
    ) -> None:
        self._registrations[(tenant_id, job_id)] = ScheduledDelivery(
            tenant_id=tenant_id,
            job_id=job_id,
            cron=cron,
            webhook_url=webhook_url,
            payload=payload,
            registered_at=datetime.now(UTC),
        )
        logger.info("Registered recurring delivery for job {} ({})", job_id, cron)

    def registrations(self) -> list[ScheduledDelivery]:
        return list(self._registrations.values())

"""Webhook delivery data types."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a webhook dispatch after all attempts."""

    success: bool
    attempts: int
    last_attempt_at: datetime | None
    error: str | None = None

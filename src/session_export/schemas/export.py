"""Export Pydantic v2 request/response schemas.

``ExportFilters`` is the immutable, validated description of an export
request.  It is produced once at the API/CLI boundary and never mutated by
the export service.
"""

import enum
import re
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from session_export.core.errors import ValidationError
from session_export.models.export_job import DeliveryStatus, DeliveryType, JobStatus

_CRON_PATTERN = re.compile(r"^(\S+\s+){4}\S+$")


class ExportFormat(enum.StrEnum):
    """Supported artifact formats."""

    CSV = "csv"
    JSON = "json"


class GameMode(enum.StrEnum):
    """Game modes recorded on gameplay sessions."""

    CAMPAIGN = "CAMPAIGN"
    ENDLESS = "ENDLESS"
    SURVIVAL = "SURVIVAL"


class DeliverySpec(BaseModel):
    """Where and when a finished export is delivered."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: DeliveryType = DeliveryType.IMMEDIATE
    webhook_url: str | None = None
    schedule: str | None = Field(default=None, description="5-field CRON expression for recurring delivery")

    @model_validator(mode="before")
    @classmethod
    def normalize_type(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        raw_type = data.get("type") or DeliveryType.IMMEDIATE.value
        if isinstance(raw_type, str):
            raw_type = raw_type.strip().lower()
        data["type"] = raw_type
        if raw_type != DeliveryType.WEBHOOK.value:
            data["webhook_url"] = None
            data["schedule"] = None
        return data

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: str | None) -> str | None:
        if v is None:
            return None
        try:
            url = httpx.URL(v)
        except httpx.InvalidURL as e:
            msg = "webhook_url must be a valid URL"
            raise ValueError(msg) from e
        if url.scheme not in ("http", "https") or not url.host:
            msg = "webhook_url must use http or https"
            raise ValueError(msg)
        return v

    @field_validator("schedule")
    @classmethod
    def validate_schedule(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not _CRON_PATTERN.match(v):
            msg = "schedule must be a valid 5-field CRON expression"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def require_webhook_url(self) -> "DeliverySpec":
        if self.type == DeliveryType.WEBHOOK and not self.webhook_url:
            msg = "webhook_url is required when delivery type is webhook"
            raise ValueError(msg)
        return self


class ExportFilters(BaseModel):
    """Validated filter criteria and delivery settings for an export."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    range_start: datetime
    range_end: datetime
    game_mode: GameMode | None = None
    min_completed_wave: int = Field(default=0, ge=0)
    format: ExportFormat = ExportFormat.CSV
    delivery: DeliverySpec = Field(default_factory=DeliverySpec)

    @field_validator("delivery", mode="before")
    @classmethod
    def default_delivery(cls, v: Any) -> Any:
        return DeliverySpec() if v is None else v

    @field_validator("range_start", "range_end")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)

    @model_validator(mode="after")
    def check_range_order(self) -> "ExportFilters":
        if self.range_start > self.range_end:
            msg = "range_end must be after range_start"
            raise ValueError(msg)
        return self

    def to_audit_dict(self) -> dict[str, Any]:
        """JSON-safe representation for audit entries, metadata, and webhook payloads."""
        return self.model_dump(mode="json")


def parse_export_filters(payload: Any) -> ExportFilters:
    """Validate a raw request payload into ExportFilters.

    Args:
        payload: Raw request body (mapping).

    Returns:
        The validated filters.

    Raises:
        ValidationError: With per-field messages when the payload is invalid.
    """
    if not isinstance(payload, dict):
        msg = "Payload must be an object"
        raise ValidationError(msg)
    try:
        return ExportFilters.model_validate(payload)
    except PydanticValidationError as e:
        details: dict[str, Any] = {}
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "payload"
            details[field] = error["msg"]
        msg = "Invalid export payload"
        raise ValidationError(msg, details) from e


class ExportSubmissionResponse(BaseModel):
    """Response for a created export (ready or queued)."""

    status: str
    job_id: str
    download_url: str | None = None
    record_count: int | None = None
    eta_seconds: int | None = None

    model_config = {"from_attributes": True}


class ExportJobStatusResponse(BaseModel):
    """Response for an export job status lookup."""

    job_id: str
    status: JobStatus
    format: str
    delivery_type: DeliveryType
    delivery_status: DeliveryStatus
    record_count: int
    download_url: str | None = None
    eta_seconds: int | None = None
    failure_reason: str | None = None
    updated_at: datetime

    model_config = {"from_attributes": True}

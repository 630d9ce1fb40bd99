"""Tests for export request/response schemas."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from session_export.core.errors import ValidationError
from session_export.models.export_job import DeliveryType
from session_export.schemas.export import DeliverySpec, ExportFilters, ExportFormat, GameMode, parse_export_filters

BASE = {"range_start": "2024-01-01T00:00:00Z", "range_end": "2024-01-31T00:00:00Z"}


class TestDeliverySpec:
    """Tests for DeliverySpec."""

    def test_defaults_to_immediate(self) -> None:
        spec = DeliverySpec()
        assert spec.type == DeliveryType.IMMEDIATE
        assert spec.webhook_url is None

    def test_type_is_case_insensitive(self) -> None:
        spec = DeliverySpec.model_validate({"type": "WEBHOOK", "webhook_url": "https://hooks.example.com/x"})
        assert spec.type == DeliveryType.WEBHOOK

    def test_immediate_drops_webhook_fields(self) -> None:
        spec = DeliverySpec.model_validate(
            {"type": "immediate", "webhook_url": "https://hooks.example.com/x", "schedule": "0 2 * * *"}
        )
        assert spec.webhook_url is None
        assert spec.schedule is None

    def test_webhook_requires_url(self) -> None:
        with pytest.raises(PydanticValidationError, match="webhook_url is required"):
            DeliverySpec.model_validate({"type": "webhook"})

    @pytest.mark.parametrize("url", ["ftp://hooks.example.com/x", "not a url", "https://"])
    def test_rejects_bad_webhook_url(self, url: str) -> None:
        with pytest.raises(PydanticValidationError):
            DeliverySpec.model_validate({"type": "webhook", "webhook_url": url})

    def test_accepts_five_field_cron(self) -> None:
        spec = DeliverySpec.model_validate(
            {"type": "webhook", "webhook_url": "https://hooks.example.com/x", "schedule": " 0 2 * * * "}
        )
        assert spec.schedule == "0 2 * * *"

    @pytest.mark.parametrize("schedule", ["0 2 * *", "0 2 * * * *", "daily"])
    def test_rejects_bad_cron(self, schedule: str) -> None:
        with pytest.raises(PydanticValidationError, match="CRON"):
            DeliverySpec.model_validate(
                {"type": "webhook", "webhook_url": "https://hooks.example.com/x", "schedule": schedule}
            )

    def test_blank_schedule_is_none(self) -> None:
        spec = DeliverySpec.model_validate(
            {"type": "webhook", "webhook_url": "https://hooks.example.com/x", "schedule": "  "}
        )
        assert spec.schedule is None

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            DeliverySpec.model_validate({"type": "email"})


class TestExportFilters:
    """Tests for ExportFilters."""

    def test_defaults(self) -> None:
        filters = ExportFilters.model_validate(BASE)
        assert filters.format == ExportFormat.CSV
        assert filters.min_completed_wave == 0
        assert filters.game_mode is None
        assert filters.delivery.type == DeliveryType.IMMEDIATE

    def test_naive_datetimes_become_utc(self) -> None:
        filters = ExportFilters(range_start=datetime(2024, 1, 1), range_end=datetime(2024, 1, 2))
        assert filters.range_start.tzinfo == UTC

    def test_offsets_normalized_to_utc(self) -> None:
        tz = timezone(timedelta(hours=2))
        filters = ExportFilters(range_start=datetime(2024, 1, 1, 2, tzinfo=tz), range_end=datetime(2024, 1, 2, tzinfo=tz))
        assert filters.range_start == datetime(2024, 1, 1, tzinfo=UTC)
        assert filters.range_start.utcoffset() == timedelta(0)

    def test_range_order_enforced(self) -> None:
        with pytest.raises(PydanticValidationError, match="range_end must be after range_start"):
            ExportFilters.model_validate({"range_start": BASE["range_end"], "range_end": BASE["range_start"]})

    def test_negative_wave_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            ExportFilters.model_validate({**BASE, "min_completed_wave": -1})

    def test_game_mode_enum(self) -> None:
        assert ExportFilters.model_validate({**BASE, "game_mode": "ENDLESS"}).game_mode == GameMode.ENDLESS
        with pytest.raises(PydanticValidationError):
            ExportFilters.model_validate({**BASE, "game_mode": "ARCADE"})

    def test_filters_are_immutable(self) -> None:
        filters = ExportFilters.model_validate(BASE)
        with pytest.raises(PydanticValidationError):
            filters.min_completed_wave = 5  # type: ignore[misc]

    def test_to_audit_dict_is_json_safe(self) -> None:
        data = ExportFilters.model_validate({**BASE, "format": "json"}).to_audit_dict()
        assert data["format"] == "json"
        assert data["range_start"] == "2024-01-01T00:00:00Z"
        assert data["delivery"] == {"type": "immediate", "webhook_url": None, "schedule": None}


class TestParseExportFilters:
    """Tests for parse_export_filters."""

    def test_valid_payload(self) -> None:
        assert parse_export_filters({**BASE, "format": "json"}).format == ExportFormat.JSON

    def test_null_delivery_is_immediate(self) -> None:
        filters = parse_export_filters({**BASE, "delivery": None})
        assert filters.delivery.type == DeliveryType.IMMEDIATE
        assert filters.delivery.webhook_url is None

    def test_non_mapping_payload(self) -> None:
        with pytest.raises(ValidationError, match="Payload must be an object"):
            parse_export_filters(["not", "a", "dict"])

    def test_reports_field_errors(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_export_filters({"range_start": "2024-01-01T00:00:00Z", "format": "xml"})
        details = exc_info.value.details
        assert "range_end" in details
        assert "format" in details

    def test_reports_nested_delivery_errors(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_export_filters({**BASE, "delivery": {"type": "webhook", "webhook_url": "https://h.example.com", "schedule": "bad"}})
        assert any(key.startswith("delivery") for key in exc_info.value.details)

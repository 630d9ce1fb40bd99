"""Analytics source protocol and a dataset-backed implementation.

The dataset implementation filters a list of raw gameplay-session dicts
(typically loaded from a JSON file) the way a query service would.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from loguru import logger

from session_export.schemas.export import ExportFilters


@dataclass(frozen=True)
class SessionEstimate:
    """Size and duration estimate for a filtered session set.

    Either value may be unknown (None).
    """

    count: int | None = None
    estimated_duration_ms: float | None = None


class AnalyticsRepository(Protocol):
    """Protocol for the gameplay-session query service."""

    async def estimate_session_count(self, tenant_id: str, filters: ExportFilters) -> SessionEstimate: ...

    async def fetch_sessions(self, tenant_id: str, filters: ExportFilters) -> list[dict[str, Any]]: ...


def _parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


class DatasetAnalyticsRepository:
    """Analytics source over an in-memory list of raw sessions.

    Args:
        sessions: Raw session dicts (camelCase or snake_case keys).
        ms_per_record: When set, estimates report ``count * ms_per_record``
            as the expected export duration.
    """

    def __init__(self, sessions: list[dict[str, Any]], *, ms_per_record: float | None = None) -> None:
        self._sessions = list(sessions)
        self._ms_per_record = ms_per_record

    @classmethod
    def from_file(cls, path: Path, *, ms_per_record: float | None = None) -> "DatasetAnalyticsRepository":
        """Load sessions from a JSON array file; a missing file yields an empty dataset.

        Raises:
            ValueError: If the file does not contain a JSON array.
        """
        if not path.exists():
            logger.warning("Analytics dataset {} not found; using empty dataset", path)
            return cls([], ms_per_record=ms_per_record)
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            msg = f"Analytics dataset {path} must contain a JSON array"
            raise ValueError(msg)
        logger.info("Loaded {} sessions from {}", len(data), path)
        return cls(data, ms_per_record=ms_per_record)

    def _matches(self, session: dict[str, Any], tenant_id: str, filters: ExportFilters) -> bool:
        session_tenant = _first(session, "tenant_id", "tenantId")
        if tenant_id and session_tenant != tenant_id:
            return False
        if filters.game_mode and _first(session, "game_mode", "gameMode", "mode") != filters.game_mode:
            return False
        wave = _first(session, "wave_reached", "waveReached")
        if isinstance(wave, int | float) and wave < filters.min_completed_wave:
            return False
        started_at = _parse_timestamp(_first(session, "started_at", "startedAt"))
        if started_at is not None and started_at < filters.range_start:
            return False
        ended_at = _parse_timestamp(_first(session, "ended_at", "endedAt"))
        return not (ended_at is not None and ended_at > filters.range_end)

    def _filter(self, tenant_id: str, filters: ExportFilters) -> list[dict[str, Any]]:
        return [s for s in self._sessions if self._matches(s, tenant_id, filters)]

    async def estimate_session_count(self, tenant_id: str, filters: ExportFilters) -> SessionEstimate:
        count = len(self._filter(tenant_id, filters))
        duration = count * self._ms_per_record if self._ms_per_record is not None else None
        return SessionEstimate(count=count, estimated_duration_ms=duration)

    async def fetch_sessions(self, tenant_id: str, filters: ExportFilters) -> list[dict[str, Any]]:
        return self._filter(tenant_id, filters)

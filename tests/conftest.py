"""Shared test fixtures for settings, export filters, sessions, and tenant tokens."""

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from session_export.core.config import Settings
from session_export.core.security import create_tenant_token
from session_export.schemas.export import ExportFilters

FIXED_NOW = datetime(2024, 3, 15, 12, 30, 45, 123000, tzinfo=UTC)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Test application settings."""
    return Settings(
        artifact_dir=str(tmp_path / "artifacts"),
        signed_url_base="http://test/api/v1/downloads",
        artifact_signing_secret="test-artifact-signing-secret",
        jwt_secret_key="test-secret-key-not-for-production",
        jwt_algorithm="HS256",
        webhook_default_secret="test-webhook-secret",
        webhook_backoff_ms=0,
    )


@pytest.fixture
def fixed_clock():
    """A clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def export_filters() -> ExportFilters:
    """A one-month CSV export with immediate delivery."""
    return ExportFilters(
        range_start=datetime(2024, 1, 1, tzinfo=UTC),
        range_end=datetime(2024, 1, 31, 23, 59, 59, tzinfo=UTC),
    )


def make_session(index: int = 1, tenant_id: str = "tenant-1", **overrides: Any) -> dict[str, Any]:
    """Build a raw camelCase gameplay session."""
    session = {
        "sessionId": f"sess-{index:04d}",
        "playerId": f"player-{index % 7}",
        "tenantId": tenant_id,
        "mode": "CAMPAIGN",
        "waveReached": 10 + index % 5,
        "durationSeconds": 600 + index,
        "totalScore": 1000 * index,
        "resourcesCollected": 42,
        "dominantElementUsed": "fire",
        "skillsUsage": [{"skillId": "fireball", "casts": 3}, {"skillId": "shield", "casts": 1}],
        "defeatCause": None,
        "startedAt": "2024-01-10T10:00:00Z",
        "endedAt": "2024-01-10T10:10:00Z",
    }
    session.update(overrides)
    return session


@pytest.fixture
def sessions() -> list[dict[str, Any]]:
    """Three raw sessions for tenant-1."""
    return [make_session(i) for i in range(1, 4)]


@pytest.fixture
def tenant_token(settings: Settings) -> str:
    """Bearer token for an analyst of tenant-1."""
    return create_tenant_token(
        "tenant-1",
        "analyst-7",
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def admin_token(settings: Settings) -> str:
    """Bearer token for an admin of tenant-1."""
    return create_tenant_token(
        "tenant-1",
        "admin-1",
        settings.jwt_secret_key,
        roles=["admin"],
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def session_factory():
    """Factory for raw gameplay sessions."""
    return make_session

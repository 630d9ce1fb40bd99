"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Sync/async decision thresholds
    sync_record_limit: int = Field(
        default=10_000,
        description="Largest estimated record count exported within the request",
        gt=0,
    )
    sync_duration_ms: int = Field(
        default=5_000,
        description="Largest estimated export duration (ms) handled within the request",
        gt=0,
    )

    # Artifacts
    artifact_dir: str = Field(
        default="./tmp/export-artifacts",
        description="Directory for rendered export artifacts",
    )
    signed_url_base: str = Field(
        default="http://localhost:8000/api/v1/downloads",
        description="Public URL prefix for signed artifact download links (the app's downloads route)",
    )
    artifact_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        description="Lifetime of a signed download link in seconds",
        gt=0,
    )
    artifact_signing_secret: str = Field(
        default="change-me-artifact-signing-secret",
        min_length=16,
        description="Server-held key for signing artifact download links",
    )

    @field_validator("signed_url_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # Webhook delivery
    webhook_max_attempts: int = Field(
        default=3,
        description="Delivery attempts per webhook before giving up",
        gt=0,
    )
    webhook_backoff_ms: int = Field(
        default=750,
        description="Base backoff in ms, doubled after every failed attempt",
        ge=0,
    )
    webhook_timeout: float = Field(
        default=10.0,
        description="Webhook request timeout in seconds",
        gt=0,
    )
    webhook_default_secret: str = Field(
        default="export-default-secret",
        description="HMAC secret used for tenants without a dedicated secret",
    )
    webhook_tenant_secrets: dict[str, str] = Field(
        default_factory=dict,
        description="JSON map of tenant ID to webhook HMAC secret",
    )

    # Analytics source
    analytics_dataset: str | None = Field(
        default=None,
        description="Path to a JSON file of gameplay sessions used as the analytics source",
    )

    # Tokens
    jwt_secret_key: str = Field(
        default="change-me-session-export-jwt-secret-key",
        min_length=32,
        description="Secret key for signing tenant tokens (minimum 32 characters)",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    token_expire_minutes: int = Field(
        default=60,
        description="Tenant token expiration in minutes",
        gt=0,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    # API
    api_v1_prefix: str = Field(default="/api/v1", description="API version 1 route prefix")


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()

"""
Consentry Application Settings

Configuration management using Pydantic Settings.
All values are loaded from environment variables with the CONSENTRY_ prefix.

SECURITY: Never log or expose settings containing secrets.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL database configuration."""

    model_config = SettingsConfigDict(env_prefix="CONSENTRY_DB_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="consentry", description="Database name")
    user: str = Field(default="consentry", description="Database user")
    password: SecretStr = Field(default=SecretStr("dev_password"), description="Database password")
    pool_size: int = Field(default=10, ge=1, le=100, description="Connection pool size")
    max_overflow: int = Field(default=20, ge=0, le=100, description="Max overflow connections")
    pool_timeout: int = Field(default=5, ge=1, le=60, description="Seconds to wait for a pooled connection")
    statement_timeout_ms: int = Field(
        default=5000,
        ge=100,
        le=60000,
        description="Server-side statement timeout in milliseconds",
    )

    @property
    def async_url(self) -> str:
        """Generate async database URL for SQLAlchemy."""
        password = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{password}@{self.host}:{self.port}/{self.name}"

    @property
    def sync_url(self) -> str:
        """Generate sync database URL for Alembic migrations."""
        password = self.password.get_secret_value()
        return f"postgresql://{self.user}:{password}@{self.host}:{self.port}/{self.name}"


class RateLimitSettings(BaseSettings):
    """Per-client rate limiting for the public consent endpoints."""

    model_config = SettingsConfigDict(env_prefix="CONSENTRY_RATE_LIMIT_")

    enabled: bool = Field(default=True)
    requests_per_minute: int = Field(default=100, ge=1, le=10000)
    burst_size: int = Field(default=0, ge=0, le=1000)
    retry_after_seconds: int = Field(default=60, ge=1, le=3600)


class ConsentSettings(BaseSettings):
    """Consent recording policy."""

    model_config = SettingsConfigDict(env_prefix="CONSENTRY_CONSENT_")

    default_duration_days: int = Field(default=365, ge=1, le=3650)
    notice_version: str = Field(default="3.0", description="Privacy notice version tag stamped on new records")
    max_activities: int = Field(default=100, ge=1, le=1000)
    reject_oversized_activity_lists: bool = Field(
        default=True,
        description="Reject requests whose raw activity arrays exceed max_activities",
    )
    page_match_scan_limit: int = Field(default=50, ge=1, le=500)
    projection_sync_attempts: int = Field(default=3, ge=1, le=10)
    default_revocation_reason: str = Field(default="Consent revoked by visitor")


class QuotaSettings(BaseSettings):
    """Tenant consent quota enforcement."""

    model_config = SettingsConfigDict(env_prefix="CONSENTRY_QUOTA_")

    enabled: bool = Field(default=True)
    fail_open: bool = Field(
        default=True,
        description="Admit submissions when the entitlement lookup itself fails",
    )


class SentrySettings(BaseSettings):
    """Sentry error tracking configuration."""

    model_config = SettingsConfigDict(env_prefix="CONSENTRY_SENTRY_")

    dsn: str = Field(default="", description="Sentry DSN (empty disables tracking)")
    traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)


class Settings(BaseSettings):
    """
    Main application settings.

    All configuration is loaded from environment variables with CONSENTRY_ prefix.
    Sensitive values use SecretStr to prevent accidental logging.

    Usage:
        settings = get_settings()
        db_url = settings.database.async_url
    """

    model_config = SettingsConfigDict(
        env_prefix="CONSENTRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode - NEVER enable in production")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    api_version: str = Field(default="v1", description="API version prefix")
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (widgets are embedded on third-party sites)"
    )

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    consent: ConsentSettings = Field(default_factory=ConsentSettings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)
    sentry: SentrySettings = Field(default_factory=SentrySettings)

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.
    For testing, construct Settings directly and pass it in.

    Returns:
        Settings: Application settings instance
    """
    return Settings()

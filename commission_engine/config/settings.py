"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from commission_engine.config.business_constants import (
    EXTERNAL_REFERRAL_AFTER_DAYS,
    MIN_REPORT_YEAR,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = "logs/commission_engine.log"

    # Referral classification
    referral_external_after_days: int = Field(
        default=EXTERNAL_REFERRAL_AFTER_DAYS,
        gt=0,
        description="Days before the newest referral after which an older one is external",
    )
    classification_concurrency: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Subjects classified in parallel during report aggregation",
    )

    # Reports
    min_report_year: int = Field(
        default=MIN_REPORT_YEAR,
        ge=1900,
        description="Earliest year a report range may start in",
    )

    # Commission rate settings cache (0 disables caching)
    rate_cache_ttl_seconds: float = Field(
        default=300.0,
        ge=0,
        description="How long commission rates read from system_settings are reused",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )
            if self.database_url.startswith('sqlite'):
                logger.warning(
                    'DATABASE_URL points at SQLite in production. '
                    'Row-level locking is unavailable; use PostgreSQL.'
                )
        return self

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(('postgresql+asyncpg://', 'sqlite+aiosqlite://')):
            raise ValueError(
                'DATABASE_URL must start with postgresql+asyncpg:// or sqlite+aiosqlite://'
            )
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f'Unknown log level: {v}')
        return level


# Global settings instance
settings = Settings()

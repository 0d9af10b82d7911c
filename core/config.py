"""
Application configuration using Pydantic Settings.

Typed, validated settings for the quote engine and its Django host,
loaded from environment variables and an optional .env file.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from functools import lru_cache
from typing import TYPE_CHECKING, Annotated, Literal
from urllib.parse import urlparse

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

if TYPE_CHECKING:
    from services.taxes.policy import FallbackTaxPolicy


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="Full database URL (takes precedence over individual params)",
    )

    name: str = Field(default="crossborder_quotes", description="Database name")
    user: str = Field(default="postgres", description="Database user")
    password: SecretStr = Field(default=SecretStr("postgres"), description="Database password")
    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port", ge=1, le=65535)

    @property
    def connection_url(self) -> str:
        """
        Get database connection URL.

        If DATABASE_URL is set, use it directly.
        Otherwise, build from individual parameters.
        """
        if self.url:
            return self.url
        return (
            f"postgresql://{self.user}:{self.password.get_secret_value()}"
            f"@{self.host}:{self.port}/{self.name}"
        )

    @property
    def safe_url(self) -> str:
        """Get database URL without password for logging."""
        if self.url:
            parsed = urlparse(self.url)
            if parsed.password:
                return self.url.replace(f":{parsed.password}@", ":***@")
            return self.url
        return f"postgresql://{self.user}@{self.host}:{self.port}/{self.name}"


class RedisSettings(BaseSettings):
    """Redis connection settings."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    url: str | None = Field(default=None, description="Redis connection URL")


class LoggingSettings(BaseSettings):
    """Structured logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Minimum log level"
    )
    json_format: bool = Field(default=False, description="Emit JSON log lines")


class RateFeedSettings(BaseSettings):
    """Live exchange-rate feed settings."""

    model_config = SettingsConfigDict(env_prefix="RATE_FEED_")

    url: str | None = Field(default=None, description="Rate feed endpoint (rates from USD)")
    api_key: SecretStr = Field(default=SecretStr(""), description="Rate feed API key")
    timeout_seconds: float = Field(default=5.0, gt=0, description="Per-request timeout")

    @property
    def is_configured(self) -> bool:
        """Check if a live feed endpoint is configured."""
        return bool(self.url)


class QuoteEngineSettings(BaseSettings):
    """Quote engine policy settings."""

    model_config = SettingsConfigDict(env_prefix="QUOTE_")

    fallback_policy_name: str = Field(
        default="vat-regime-default",
        description="Name of the rate set used for unclassified items",
    )
    fallback_duty_rate_percent: Decimal = Field(default=Decimal("10"), ge=0, le=100)
    fallback_tax_rate_percent: Decimal = Field(default=Decimal("13"), ge=0, le=100)
    fallback_review_by: date | None = Field(
        default=None,
        description="Date after which the fallback rates are considered stale",
    )
    fallback_strict_after_expiry: bool = Field(
        default=False,
        description="Refuse to quote unclassified items once the fallback is stale",
    )
    insurance_rate_percent: Decimal = Field(default=Decimal("1.0"), ge=0, le=100)
    insurance_minimum: Decimal = Field(default=Decimal("5"), ge=0)
    unconfigured_gateway_bypass: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Gateway codes allowed to quote without a complete configuration",
    )
    cache_ttl_seconds: int = Field(default=300, ge=0)
    refresh_interval_seconds: int = Field(
        default=300,
        ge=0,
        description="Seconds before loaded rates and classifications are reloaded",
    )

    @field_validator("unconfigured_gateway_bypass", mode="before")
    @classmethod
    def parse_gateway_codes(cls, v: str | list[str]) -> list[str]:
        """Parse gateway codes from comma-separated string or list."""
        if isinstance(v, str):
            return [code.strip().lower() for code in v.split(",") if code.strip()]
        return [code.lower() for code in v]

    def fallback_policy(self) -> FallbackTaxPolicy:
        """Build the fallback tax policy described by these settings."""
        from services.taxes.policy import FallbackTaxPolicy

        return FallbackTaxPolicy(
            name=self.fallback_policy_name,
            duty_rate_percent=self.fallback_duty_rate_percent,
            tax_rate_percent=self.fallback_tax_rate_percent,
            review_by=self.fallback_review_by,
            strict_after_expiry=self.fallback_strict_after_expiry,
        )


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections and provides environment-specific
    settings loading.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")
    secret_key: SecretStr = Field(
        default=SecretStr("django-insecure-change-me-in-production"),
        description="Django secret key",
    )
    allowed_hosts: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["localhost", "127.0.0.1"],
        description="Allowed hosts",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    rate_feed: RateFeedSettings = Field(default_factory=RateFeedSettings)
    quotes: QuoteEngineSettings = Field(default_factory=QuoteEngineSettings)

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v: str | list[str]) -> list[str]:
        """Parse allowed hosts from comma-separated string or list."""
        if isinstance(v, str):
            return [h.strip() for h in v.split(",") if h.strip()]
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Configured Settings instance.
    """
    return Settings()

"""Server configuration read from EREGULATIONS_* variables and an optional .env file.

Example:
    >>> from eregulations_mcp.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.cache.procedure_ttl
    604800.0

    # Overrides, one variable per field:
    # EREGULATIONS_API_URL=https://api-example.eregulations.org
    # EREGULATIONS_CACHE_ENABLED=false
    # EREGULATIONS_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, NonNegativeFloat, PositiveFloat, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DAY = 24 * 60 * 60.0


class ApiSettings(BaseSettings):
    """Upstream eRegulations API configuration."""

    model_config = SettingsConfigDict(env_prefix="EREGULATIONS_API_", extra="ignore")

    url: str = Field(default="", description="Base URL of the eRegulations API")
    timeout: PositiveFloat = Field(default=60.0, description="Request timeout in seconds")
    user_agent: str = "Mozilla/5.0 (compatible; eregulations-mcp/0.1)"

    @field_validator("url", mode="before")
    @classmethod
    def _strip_url(cls, v: str | None) -> str:
        return (v or "").strip()


class CacheSettings(BaseSettings):
    """TTLs (seconds) for each upstream query kind."""

    model_config = SettingsConfigDict(env_prefix="EREGULATIONS_CACHE_", extra="ignore")

    enabled: bool = True
    default_ttl: PositiveFloat = Field(default=3600.0, description="Fallback TTL in seconds")
    procedures_list_ttl: PositiveFloat = 30 * _DAY
    procedure_ttl: PositiveFloat = 7 * _DAY
    step_ttl: PositiveFloat = 7 * _DAY
    search_ttl: PositiveFloat = 30 * _DAY
    cleanup_interval: PositiveFloat = Field(default=_DAY, description="Seconds between expired-entry sweeps")


class RetrySettings(BaseSettings):
    """Retry configuration for upstream requests."""

    model_config = SettingsConfigDict(env_prefix="EREGULATIONS_RETRY_", extra="ignore")

    max_retries: Annotated[int, Field(ge=0, le=10)] = 3
    delay: NonNegativeFloat = Field(default=2.0, description="Constant delay between attempts in seconds")


class LoggingSettings(BaseSettings):
    """Log renderer and threshold."""

    model_config = SettingsConfigDict(env_prefix="EREGULATIONS_LOG_", extra="ignore")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class ServerSettings(BaseSettings):
    """MCP transport configuration."""

    model_config = SettingsConfigDict(env_prefix="EREGULATIONS_SERVER_", extra="ignore")

    name: str = "eregulations"
    transport: Literal["stdio", "http", "sse", "streamable-http"] = "stdio"
    host: str = "127.0.0.1"
    port: PositiveInt = 8080


class Settings(BaseSettings):
    """Root settings, loaded from EREGULATIONS_* environment variables and .env."""

    model_config = SettingsConfigDict(
        env_prefix="EREGULATIONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    api: ApiSettings = Field(default_factory=ApiSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the global settings instance (cached)."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()

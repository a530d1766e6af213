"""Configuration management using pydantic-settings."""

from .settings import (
    ApiSettings,
    CacheSettings,
    LoggingSettings,
    RetrySettings,
    ServerSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "ApiSettings",
    "CacheSettings",
    "LoggingSettings",
    "RetrySettings",
    "ServerSettings",
    "Settings",
    "clear_settings_cache",
    "get_settings",
]

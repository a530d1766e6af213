"""Tests for environment settings and the command-line entry point."""

from __future__ import annotations

import pytest

from eregulations_mcp import __main__ as cli
from eregulations_mcp.foundation.config import Settings, get_settings

_DAY = 24 * 60 * 60


@pytest.fixture
def env(monkeypatch, clean_settings_cache):
    for name in ("EREGULATIONS_API_URL", "EREGULATIONS_CACHE_ENABLED", "EREGULATIONS_LOG_LEVEL",
                 "EREGULATIONS_RETRY_MAX_RETRIES", "EREGULATIONS_SERVER_TRANSPORT"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(env) -> None:
    settings = Settings(_env_file=None)

    assert settings.api.url == ""
    assert settings.api.timeout == 60
    assert settings.cache.enabled is True
    assert settings.cache.default_ttl == 3600
    assert settings.cache.procedures_list_ttl == 30 * _DAY
    assert settings.cache.procedure_ttl == 7 * _DAY
    assert settings.cache.step_ttl == 7 * _DAY
    assert settings.cache.search_ttl == 30 * _DAY
    assert settings.cache.cleanup_interval == _DAY
    assert (settings.retry.max_retries, settings.retry.delay) == (3, 2.0)
    assert settings.server.transport == "stdio"


def test_environment_overrides(env) -> None:
    env.setenv("EREGULATIONS_API_URL", "  https://api-tanzania.tradeportal.org  ")
    env.setenv("EREGULATIONS_CACHE_ENABLED", "false")
    env.setenv("EREGULATIONS_LOG_LEVEL", "debug")
    env.setenv("EREGULATIONS_RETRY_MAX_RETRIES", "0")

    settings = get_settings()

    assert settings.api.url == "https://api-tanzania.tradeportal.org"
    assert settings.cache.enabled is False
    assert settings.logging.level == "DEBUG"
    assert settings.retry.max_retries == 0


def test_get_settings_is_cached(env) -> None:
    assert get_settings() is get_settings()


# ═════════════════════════════════════════════════════════════════════════════
# CLI
# ═════════════════════════════════════════════════════════════════════════════


class _RecordingServer:
    def __init__(self) -> None:
        self.runs: list[tuple[str, str, int]] = []

    def run(self, transport: str, *, host: str, port: int) -> None:
        self.runs.append((transport, host, port))


def test_cli_without_api_url_exits_with_error(env) -> None:
    assert cli.main(["--log-format", "none"]) == 2


def test_cli_overrides_settings(env) -> None:
    import eregulations_mcp.ext.mcp as mcp_ext

    seen: dict[str, Settings] = {}
    server = _RecordingServer()

    def fake_create_server(settings, **kwargs):
        seen["settings"] = settings
        return server

    env.setattr(mcp_ext, "create_server", fake_create_server)

    code = cli.main([
        "--api-url", "api.example.org",
        "--transport", "sse",
        "--port", "9000",
        "--no-cache",
        "--log-format", "none",
        "--log-level", "debug",
    ])

    settings = seen["settings"]
    assert code == 0
    assert settings.api.url == "api.example.org"
    assert settings.cache.enabled is False
    assert settings.logging.level == "DEBUG"
    assert server.runs == [("sse", "127.0.0.1", 9000)]


def test_cli_rejects_unknown_transport(env) -> None:
    with pytest.raises(SystemExit):
        cli.main(["--transport", "carrier-pigeon"])

"""Command-line entry point: `eregulations-mcp` or `python -m eregulations_mcp`.

Command-line options override EREGULATIONS_* environment settings.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from eregulations_mcp import __version__
from eregulations_mcp.foundation.config import get_settings
from eregulations_mcp.runtime.observability import configure_logging, get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eregulations-mcp",
        description="MCP server for eRegulations procedures",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--api-url", help="eRegulations API base URL (env: EREGULATIONS_API_URL)")
    parser.add_argument("--transport", choices=["stdio", "http", "sse", "streamable-http"], help="MCP transport")
    parser.add_argument("--host", help="Bind host for HTTP transports")
    parser.add_argument("--port", type=int, help="Bind port for HTTP transports")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], type=str.upper)
    parser.add_argument("--log-format", choices=["console", "json", "none"])
    parser.add_argument("--no-cache", action="store_true", help="Disable the in-memory response cache")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    updates: dict[str, dict[str, object]] = {}
    if args.api_url:
        updates["api"] = {"url": args.api_url}
    if args.no_cache:
        updates["cache"] = {"enabled": False}
    if args.log_level or args.log_format:
        updates["logging"] = {k: v for k, v in (("level", args.log_level), ("format", args.log_format)) if v}
    server_updates = {k: v for k, v in (("transport", args.transport), ("host", args.host), ("port", args.port)) if v}
    if server_updates:
        updates["server"] = server_updates
    settings = settings.model_copy(update={
        section: getattr(settings, section).model_copy(update=values) for section, values in updates.items()
    })

    configure_logging(format=settings.logging.format, level=settings.logging.level)
    log = get_logger("eregulations")

    if not settings.api.url:
        log.error("no API URL configured", hint="set EREGULATIONS_API_URL or pass --api-url")
        return 2

    from eregulations_mcp.ext.mcp import create_server

    server = create_server(settings, logger=log)
    server.run(settings.server.transport, host=settings.server.host, port=settings.server.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())

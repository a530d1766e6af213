"""Structured logging with bound context.

Every renderer writes to stderr by default: on the stdio transport stdout
carries the MCP protocol stream and must stay clean.

Quick Start:
    >>> from eregulations_mcp.runtime.observability import configure_logging, get_logger
    >>> configure_logging(format="json", level="DEBUG")
    >>> log = get_logger("api", base_url="https://api-tanzania.tradeportal.org")
    >>> log.bind(procedure_id=1246).info("cache miss", key="procedure_1246")
"""

from __future__ import annotations

import logging
import sys
import time
import traceback
from dataclasses import dataclass, field
from typing import Protocol, TextIO, runtime_checkable

import orjson

from eregulations_mcp.foundation.errors import JsonDict, JsonValue

_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# ═══════════════════════════════════════════════════════════════════════════════
# Logger
# ═══════════════════════════════════════════════════════════════════════════════


@runtime_checkable
class StructuredLogger(Protocol):
    """What the client, handlers and server expect from an injected logger."""

    def bind(self, **fields: JsonValue) -> StructuredLogger: ...
    def debug(self, event: str, **fields: JsonValue) -> None: ...
    def info(self, event: str, **fields: JsonValue) -> None: ...
    def warning(self, event: str, **fields: JsonValue) -> None: ...
    def error(self, event: str, **fields: JsonValue) -> None: ...
    def exception(self, event: str, **fields: JsonValue) -> None: ...


@dataclass(slots=True, frozen=True)
class LogEntry:
    """One event plus every field bound along the way."""

    at: float
    level: str
    event: str
    fields: JsonDict

    @property
    def iso_time(self) -> str:
        millis = int(self.at * 1000) % 1000
        return time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(self.at)) + f".{millis:03d}Z"

    @property
    def clock_time(self) -> str:
        """HH:MM:SS.mmm, UTC."""
        millis = int(self.at * 1000) % 1000
        return time.strftime("%H:%M:%S", time.gmtime(self.at)) + f".{millis:03d}"


@dataclass(slots=True)
class BoundLogger:
    """Logger carrying context fields; bind() returns a new logger, never mutates.

    `_renderer` and `_level` pin the logger to a specific output. When left
    unset, the process-wide configuration from configure_logging() applies at
    emit time.

    Example:
        >>> log = BoundLogger(context={"logger": "api"})
        >>> log.bind(procedure_id=42).info("cache hit")
        # => 10:30:45.123 [info] cache hit logger="api" procedure_id=42
    """

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int | None = None

    def bind(self, **fields: JsonValue) -> BoundLogger:
        return BoundLogger({**self.context, **fields}, self._renderer, self._level)

    def debug(self, event: str, **fields: JsonValue) -> None:
        self._emit(logging.DEBUG, event, fields)

    def info(self, event: str, **fields: JsonValue) -> None:
        self._emit(logging.INFO, event, fields)

    def warning(self, event: str, **fields: JsonValue) -> None:
        self._emit(logging.WARNING, event, fields)

    def error(self, event: str, **fields: JsonValue) -> None:
        self._emit(logging.ERROR, event, fields)

    def exception(self, event: str, **fields: JsonValue) -> None:
        """Error-level event with the traceback of the exception being handled."""
        self._emit(logging.ERROR, event, {**fields, "exc_info": traceback.format_exc()})

    def _emit(self, level: int, event: str, fields: JsonDict) -> None:
        threshold = self._level if self._level is not None else _state.level
        if level < threshold:
            return
        renderer = self._renderer or _state.renderer
        renderer.render(LogEntry(time.time(), logging.getLevelName(level).lower(), event, {**self.context, **fields}))


# ═══════════════════════════════════════════════════════════════════════════════
# Renderers
# ═══════════════════════════════════════════════════════════════════════════════


@runtime_checkable
class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


@dataclass(slots=True)
class ConsoleRenderer:
    """Human-readable lines: `time [level] event key=value ...`, traceback below."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None: color only when output is a terminal
    show_timestamp: bool = True

    def __post_init__(self) -> None:
        if self.colors is None:
            isatty = getattr(self.output, "isatty", None)
            self.colors = bool(isatty and isatty())

    def render(self, entry: LogEntry) -> None:
        paint = _paint if self.colors else _plain
        words = [paint(entry.clock_time, "dim")] if self.show_timestamp else []
        words.append(paint(f"[{entry.level}]", _LEVEL_STYLE.get(entry.level, "dim")))
        words.append(paint(entry.event, "bold"))
        exc_info = entry.fields.get("exc_info")
        for key in sorted(entry.fields):
            if key != "exc_info":
                words.append(f"{paint(key, 'cyan')}={_console_value(entry.fields[key])}")

        self.output.write(" ".join(words) + "\n")
        if exc_info:
            self.output.write(paint(str(exc_info).rstrip("\n"), "red") + "\n")


@dataclass(slots=True)
class JsonRenderer:
    """One JSON object per line, for log shippers."""

    output: TextIO = field(default_factory=lambda: sys.stderr)

    def render(self, entry: LogEntry) -> None:
        record = {"timestamp": entry.iso_time, "level": entry.level, "event": entry.event, **entry.fields}
        line = orjson.dumps(record, default=str, option=orjson.OPT_NON_STR_KEYS | orjson.OPT_APPEND_NEWLINE)
        self.output.write(line.decode())


@dataclass(slots=True)
class NoOpRenderer:
    """Discards everything; used by tests and `--log-format none`."""

    def render(self, entry: LogEntry) -> None:
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Process-wide configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class _LoggingState:
    level: int = logging.INFO
    renderer: LogRenderer = field(default_factory=ConsoleRenderer)


_state = _LoggingState()


def configure_logging(
    format: str = "console",  # noqa: A002 - matches the settings field
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Select the renderer and minimum level for every logger without its own.

    Args:
        format: "console", "json" or "none"
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive)
        output: Stream to write to; stderr when omitted
        colors: Console colors on/off; auto-detected when None
    """
    stream = output or sys.stderr
    renderer: LogRenderer
    match format:
        case "console":
            renderer = ConsoleRenderer(output=stream, colors=colors)
        case "json":
            renderer = JsonRenderer(output=stream)
        case "none":
            renderer = NoOpRenderer()
        case _:
            raise ValueError(f"Unknown format: {format!r} (expected console, json or none)")

    _state.level = _LEVELS.get(level.upper(), logging.INFO)
    _state.renderer = renderer
    return renderer


def get_logger(name: str | None = None, **context: JsonValue) -> BoundLogger:
    """Logger following the process-wide configuration; `name` is bound as `logger`."""
    if name:
        context["logger"] = name
    return BoundLogger(context)


# ─── Console styling ─────────────────────────────────────────────────────────

_STYLES = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
}

_LEVEL_STYLE = {"debug": "dim", "info": "green", "warning": "yellow", "error": "red", "critical": "red"}


def _paint(text: str, style: str) -> str:
    return f"{_STYLES[style]}{text}{_STYLES['reset']}"


def _plain(text: str, style: str) -> str:
    return text


def _console_value(value: object) -> str:
    """Strings quoted, booleans lowercase, containers as compact JSON."""
    match value:
        case str():
            return f'"{value}"'
        case bool():
            return "true" if value else "false"
        case int() | float() | None:
            return str(value)
        case dict() | list() | tuple():
            return orjson.dumps(value, default=str).decode()
    return repr(value)

"""Structured logging for the bridge.

Every log call is an event name plus key/value fields. Fields come from
three places, merged in order: the scoped ``log_context``, the logger's
bound context, and the call site.

Quick Start:
    >>> from universal_adapter.runtime.observability import configure_logging, get_logger
    >>> configure_logging(format="json")
    >>> log = get_logger("universal_adapter.sessions")
    >>> log.info("connection opened", connection_id="c-1", live=1)

    >>> # Fields added to every event inside the block, across awaits
    >>> with log_context(correlation_id="42"):
    ...     await dispatcher.dispatch("notion_get_page", {"pageId": "abc"})
"""

from __future__ import annotations

import contextlib
import logging
import sys
import time
from collections.abc import Iterator
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import NamedTuple, Protocol, TextIO

import orjson

from ...foundation.errors import JsonDict, JsonValue

_scope: ContextVar[JsonDict] = ContextVar("universal_adapter_log_scope", default={})


class LogEntry(NamedTuple):
    """One rendered event."""

    timestamp: float
    level: int
    event: str
    fields: JsonDict

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level).lower()


class LogRenderer(Protocol):
    def render(self, entry: LogEntry) -> None: ...


class BoundLogger:
    """Logger carrying a fixed set of fields. bind() derives a new one."""

    __slots__ = ("context",)

    def __init__(self, context: JsonDict | None = None) -> None:
        self.context: JsonDict = context or {}

    def bind(self, **fields: JsonValue) -> BoundLogger:
        return BoundLogger({**self.context, **fields})

    def _emit(self, level: int, event: str, fields: JsonDict) -> None:
        if level < _config.level:
            return
        _config.renderer.render(LogEntry(time.time(), level, event, {**_scope.get(), **self.context, **fields}))

    def debug(self, event: str, **fields: JsonValue) -> None:
        self._emit(logging.DEBUG, event, fields)

    def info(self, event: str, **fields: JsonValue) -> None:
        self._emit(logging.INFO, event, fields)

    def warning(self, event: str, **fields: JsonValue) -> None:
        self._emit(logging.WARNING, event, fields)

    def error(self, event: str, **fields: JsonValue) -> None:
        self._emit(logging.ERROR, event, fields)


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────

_ANSI = {logging.DEBUG: "\033[2m", logging.INFO: "\033[32m", logging.WARNING: "\033[33m", logging.ERROR: "\033[31m"}
_RESET = "\033[0m"


class ConsoleRenderer:
    """``HH:MM:SS.mmm LEVEL   logger: event key=value ...`` on stderr."""

    __slots__ = ("output", "colors")

    def __init__(self, output: TextIO | None = None, colors: bool | None = None) -> None:
        self.output = output or sys.stderr
        self.colors = self.output.isatty() if colors is None else colors

    def render(self, entry: LogEntry) -> None:
        fields = dict(entry.fields)
        logger = fields.pop("logger", None)
        stamp = datetime.fromtimestamp(entry.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]
        level = f"{entry.level_name.upper():<7}"
        if self.colors:
            level = f"{_ANSI.get(entry.level, '')}{level}{_RESET}"
        head = f"{logger}: {entry.event}" if logger else entry.event
        tail = " ".join(f"{k}={_console_value(v)}" for k, v in sorted(fields.items()))
        print(f"{stamp} {level} {head} {tail}".rstrip(), file=self.output)


class JsonRenderer:
    """One JSON object per line."""

    __slots__ = ("output",)

    def __init__(self, output: TextIO | None = None) -> None:
        self.output = output or sys.stdout

    def render(self, entry: LogEntry) -> None:
        record = {
            "timestamp": datetime.fromtimestamp(entry.timestamp, tz=UTC).isoformat(),
            "level": entry.level_name,
            "event": entry.event,
            **entry.fields,
        }
        self.output.write(orjson.dumps(record, option=orjson.OPT_APPEND_NEWLINE, default=str).decode())


class NoOpRenderer:
    """Discards everything."""

    __slots__ = ()

    def render(self, entry: LogEntry) -> None:
        pass


def _console_value(v: object) -> str:
    match v:
        case str() if " " in v or not v: return f'"{v}"'
        case bool() | None: return orjson.dumps(v).decode()
        case dict() | list(): return orjson.dumps(v, default=str).decode()
        case _: return str(v)


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────


class _Config:
    __slots__ = ("renderer", "level")

    def __init__(self) -> None:
        self.renderer: LogRenderer = ConsoleRenderer()
        self.level = logging.INFO


_config = _Config()


def configure_logging(
    format: str = "console",  # noqa: A002 - matches settings field
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Select the process-wide renderer ("console", "json", "none") and minimum level."""
    renderers = {
        "console": lambda: ConsoleRenderer(output, colors),
        "json": lambda: JsonRenderer(output),
        "none": NoOpRenderer,
    }
    if format not in renderers:
        raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")
    _config.renderer = renderers[format]()
    _config.level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    return _config.renderer


def get_logger(name: str | None = None, **fields: JsonValue) -> BoundLogger:
    """Logger whose events carry ``logger=name`` plus ``fields``."""
    return BoundLogger({**fields, "logger": name} if name else dict(fields))


@contextlib.contextmanager
def log_context(**fields: JsonValue) -> Iterator[None]:
    """Add ``fields`` to every event logged inside the block."""
    token = _scope.set({**_scope.get(), **fields})
    try:
        yield
    finally:
        _scope.reset(token)

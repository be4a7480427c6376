"""Structured JSON logging with bound context fields."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Any

_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}

_FIELDS_ATTR = "_swkit_fields"


def logging_level(level: str) -> int:
    """Map a level name to a logging level; unknown names mean warning."""
    return _LEVELS.get(level, logging.WARNING)


class _JsonFormatter(logging.Formatter):
    def __init__(self, *, capital_level: bool, time_key: str, iso_time: bool) -> None:
        super().__init__()
        self._capital = capital_level
        self._time_key = time_key
        self._iso = iso_time

    def format(self, record: logging.LogRecord) -> str:
        name = _LEVEL_NAMES.get(record.levelno, record.levelname.lower())
        if self._iso:
            stamp: Any = datetime.fromtimestamp(record.created).astimezone().isoformat(
                timespec="milliseconds"
            )
        else:
            stamp = record.created
        entry: dict[str, Any] = {
            "level": name.upper() if self._capital else name,
            self._time_key: stamp,
            "msg": record.getMessage(),
        }
        entry.update(getattr(record, _FIELDS_ATTR, {}))
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class Logger:
    """A logger that attaches a fixed set of fields to every entry."""

    def __init__(self, base: logging.Logger, fields: dict[str, Any] | None = None) -> None:
        self._base = base
        self._fields = dict(fields or {})

    @property
    def fields(self) -> dict[str, Any]:
        """The fields attached to every entry."""
        return dict(self._fields)

    def with_fields(
        self,
        *args: Any,
        request_id: str | None = None,
        correlation_id: str | None = None,
    ) -> Logger:
        """Return a logger carrying extra name/value pairs.

        Returns this logger unchanged when nothing is added.
        """
        if len(args) % 2:
            raise ValueError("fields must be given as name, value pairs")
        names = args[::2]
        for name in names:
            if not isinstance(name, str):
                raise TypeError(f"field name must be a string, got {name!r}")
        added: dict[str, Any] = dict(zip(names, args[1::2]))
        if request_id is not None:
            added["request_id"] = request_id
        if correlation_id is not None:
            added["correlation_id"] = correlation_id
        if not added:
            return self
        return Logger(self._base, {**self._fields, **added})

    def _log(self, level: int, msg: Any, args: tuple[Any, ...]) -> None:
        self._base.log(level, msg, *args, extra={_FIELDS_ATTR: dict(self._fields)})

    def debug(self, msg: Any, *args: Any) -> None:
        """Log at debug level; ``args`` are %-formatted into ``msg``."""
        self._log(logging.DEBUG, msg, args)

    def info(self, msg: Any, *args: Any) -> None:
        """Log at info level; ``args`` are %-formatted into ``msg``."""
        self._log(logging.INFO, msg, args)

    def error(self, msg: Any, *args: Any) -> None:
        """Log at error level; ``args`` are %-formatted into ``msg``."""
        self._log(logging.ERROR, msg, args)


def _build(level: int, handler: logging.Handler, formatter: logging.Formatter) -> Logger:
    base = logging.Logger("swkit", level)
    handler.setFormatter(formatter)
    base.addHandler(handler)
    return Logger(base)


def new_logger() -> Logger:
    """Return an info-level JSON logger writing to standard error."""
    formatter = _JsonFormatter(capital_level=False, time_key="ts", iso_time=False)
    return _build(logging.INFO, logging.StreamHandler(sys.stderr), formatter)


def _custom_formatter() -> _JsonFormatter:
    return _JsonFormatter(capital_level=True, time_key="timestamp", iso_time=True)


def new_custom(level: str) -> Logger:
    """Return a JSON logger at ``level`` writing to standard error."""
    return _build(logging_level(level), logging.StreamHandler(sys.stderr), _custom_formatter())


def new_custom_with_file(level: str, output_path: str) -> Logger:
    """Return a JSON logger at ``level`` appending to ``output_path``."""
    handler = logging.FileHandler(output_path, encoding="utf-8")
    return _build(logging_level(level), handler, _custom_formatter())
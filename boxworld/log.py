"""Timestamped log lines written to standard error."""

from __future__ import annotations

import enum
import sys
import time

__all__ = [
    "LogLevel",
    "format_line",
    "write",
    "trace",
    "debug",
    "info",
    "warn",
    "error",
]


class LogLevel(enum.IntEnum):
    """Severity of a log message."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4

    @property
    def label(self) -> str:
        """Five-character label used in log lines."""
        return _LABELS[self]


_LABELS = {
    LogLevel.TRACE: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO ",
    LogLevel.WARN: "WARN ",
    LogLevel.ERROR: "ERROR",
}

_UNKNOWN_LABEL = "?????"


def _label_for(level: int) -> str:
    try:
        return LogLevel(level).label
    except ValueError:
        return _UNKNOWN_LABEL


def format_line(level: int, msg: str, timestamp_ms: int) -> str:
    """Return one log line: ``[milliseconds][LEVEL] message``."""
    return f"[{int(timestamp_ms)}][{_label_for(level)}] {msg}"


def write(level: int, msg: str) -> None:
    """Write a message at ``level`` to standard error, stamped with wall-clock milliseconds."""
    timestamp_ms = time.time_ns() // 1_000_000
    print(format_line(level, msg, timestamp_ms), file=sys.stderr, flush=True)


def trace(msg: str) -> None:
    write(LogLevel.TRACE, msg)


def debug(msg: str) -> None:
    write(LogLevel.DEBUG, msg)


def info(msg: str) -> None:
    write(LogLevel.INFO, msg)


def warn(msg: str) -> None:
    write(LogLevel.WARN, msg)


def error(msg: str) -> None:
    write(LogLevel.ERROR, msg)
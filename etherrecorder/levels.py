"""Log levels, output destinations, timestamp granularity and entry formatting."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass

LOG_MSG_BUFFER_SIZE = 1024
THREAD_LABEL_SIZE = 64
DEFAULT_INDEX_WIDTH = 12

ANSI_RESET = "\x1b[0m"


class LogLevel(enum.IntEnum):
    """Severity of a log message, from most to least verbose."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    NOTICE = 3
    WARN = 4
    ERROR = 5
    CRITICAL = 6
    FATAL = 7


class LogOutput(enum.Enum):
    """Where log messages are written."""

    SCREEN = enum.auto()
    FILE = enum.auto()
    BOTH = enum.auto()


class TimestampGranularity(enum.IntEnum):
    """Number of sub-second units shown in a timestamp."""

    NANOSECOND = 1_000_000_000
    MICROSECOND = 1_000_000
    MILLISECOND = 1_000
    CENTISECOND = 100
    DECISECOND = 10
    SECOND = 1


@dataclass(frozen=True)
class LogEntry:
    """One log message; the timestamp is in nanoseconds since the Unix epoch."""

    index: int
    level: LogLevel
    timestamp: int
    message: str
    thread_label: str


_LEVEL_NAMES = {
    "trace": LogLevel.TRACE,
    "debug": LogLevel.DEBUG,
    "info": LogLevel.INFO,
    "notice": LogLevel.NOTICE,
    "warn": LogLevel.WARN,
    "warning": LogLevel.WARN,
    "error": LogLevel.ERROR,
    "err": LogLevel.ERROR,
    "critical": LogLevel.CRITICAL,
    "fatal": LogLevel.FATAL,
    "fatal error": LogLevel.FATAL,
}

_OUTPUT_NAMES = {
    "file": LogOutput.FILE,
    "log_file": LogOutput.FILE,
    "console": LogOutput.SCREEN,
    "screen": LogOutput.SCREEN,
    "terminal": LogOutput.SCREEN,
    "stderr": LogOutput.SCREEN,
    "stdout": LogOutput.SCREEN,
    "file and console": LogOutput.BOTH,
    "file_and_console": LogOutput.BOTH,
    "both": LogOutput.BOTH,
    "all": LogOutput.BOTH,
}

_GRANULARITY_NAMES = {
    "nanosecond": TimestampGranularity.NANOSECOND,
    "microsecond": TimestampGranularity.MICROSECOND,
    "millisecond": TimestampGranularity.MILLISECOND,
    "centisecond": TimestampGranularity.CENTISECOND,
    "decisecond": TimestampGranularity.DECISECOND,
    "second": TimestampGranularity.SECOND,
}

_LEVEL_LABELS = {
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO ",
    LogLevel.WARN: "WARN ",
    LogLevel.ERROR: "ERROR",
    LogLevel.FATAL: "FATAL",
}

_LEVEL_COLOURS = {
    LogLevel.DEBUG: "\x1b[36m",
    LogLevel.INFO: "\x1b[32m",
    LogLevel.NOTICE: "\x1b[34m",
    LogLevel.WARN: "\x1b[33m",
    LogLevel.ERROR: "\x1b[31m",
    LogLevel.CRITICAL: "\x1b[35m",
    LogLevel.FATAL: "\x1b[41m",
}


def log_level_from_string(text: str | None, default: LogLevel) -> LogLevel:
    """Parse a level name case-insensitively, falling back to the default."""
    if text is None:
        return default
    return _LEVEL_NAMES.get(text.lower(), default)


def log_output_from_string(text: str | None, default: LogOutput) -> LogOutput:
    """Parse an output destination name case-insensitively, falling back to the default."""
    if text is None:
        return default
    return _OUTPUT_NAMES.get(text.lower(), default)


def timestamp_granularity_from_string(
    text: str | None, default: TimestampGranularity
) -> TimestampGranularity:
    """Parse a granularity name case-insensitively, falling back to the default."""
    if text is None:
        return default
    return _GRANULARITY_NAMES.get(text.lower(), default)


def log_level_to_string(level: LogLevel) -> str:
    """Return the five-character label printed for a level."""
    return _LEVEL_LABELS.get(level, "UNKNN")


def level_colour(level: LogLevel, enabled: bool) -> str:
    """Return the ANSI colour code for a level, or '' when colours are off."""
    if not enabled:
        return ""
    return _LEVEL_COLOURS.get(level, "")


def format_entry(
    entry: LogEntry,
    granularity: TimestampGranularity = TimestampGranularity.NANOSECOND,
    index_width: int = DEFAULT_INDEX_WIDTH,
    colour: str | None = None,
) -> str:
    """Render an entry as one log line, without a trailing newline.

    ``colour`` is None for file output; for console output it is the colour
    prefix (possibly empty), and a reset code follows the level label.
    """
    seconds, nanoseconds = divmod(entry.timestamp, 1_000_000_000)
    time_text = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(seconds))

    granularity_value = int(granularity)
    fraction = nanoseconds // (1_000_000_000 // granularity_value)
    fractional_width = len(str(granularity_value)) - 1

    width = index_width if index_width >= 0 else DEFAULT_INDEX_WIDTH
    index_text = f"{entry.index:0{width}d}"

    label = log_level_to_string(entry.level)
    if colour is not None:
        label = f"{colour}{label}{ANSI_RESET}"

    if fractional_width > 0:
        stamp = f"{time_text}.{fraction:0{fractional_width}d}"
    else:
        stamp = time_text
    return f"{index_text} {stamp} {label}: [{entry.thread_label}] {entry.message}"
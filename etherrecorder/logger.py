"""Threaded application logger writing to the console and per-thread log files."""

from __future__ import annotations

import inspect
import itertools
import os
import sys
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import IO, Any

from etherrecorder.levels import (
    DEFAULT_INDEX_WIDTH,
    LOG_MSG_BUFFER_SIZE,
    THREAD_LABEL_SIZE,
    LogEntry,
    LogLevel,
    LogOutput,
    TimestampGranularity,
    format_entry,
    level_colour,
    log_level_from_string,
    log_output_from_string,
    timestamp_granularity_from_string,
)
from etherrecorder.log_queue import LOG_QUEUE_SIZE, LogQueue
from etherrecorder.platform_utils import (
    PATH_SEPARATOR,
    create_directories,
    sanitise_path,
    str_cmp_nocase,
    strip_directory_path,
)

MAX_LOG_FAILURES = 100
MAX_THREADS = 100
MAX_DIRECTORY_FAILURE_REPORTS = 5
DEFAULT_LOG_FILE_NAME = "log_file.log"
DEFAULT_LOG_FILE_SIZE = 10_485_760

CONFIG_LOG_PATH_KEY = "log_file_path"
CONFIG_LOG_FILE_KEY = "log_file_name"

_thread_state = threading.local()


def get_thread_label() -> str | None:
    """Return the label given to the current thread, or None if it has none."""
    return getattr(_thread_state, "label", None)


def set_thread_label(label: str | None) -> None:
    """Set the label of the current thread."""
    _thread_state.label = label


@dataclass
class _LogFile:
    label: str
    filename: str
    handle: IO[str] | None = None

    def close(self) -> None:
        if self.handle is not None:
            self.handle.close()
            self.handle = None


class Logger:
    """Queues log entries and publishes them to the screen and to log files.

    The application log file receives every entry unless the entry's thread
    has a file of its own.
    """

    def __init__(
        self, stream: IO[str] | None = None, queue_size: int = LOG_QUEUE_SIZE
    ) -> None:
        self._stream = stream
        self._lock = threading.RLock()
        self._counter = itertools.count(1)
        self._counter_lock = threading.Lock()
        self._queue = LogQueue(queue_size, on_overflow=self._on_queue_overflow)
        self._queue_started = False
        self._config: Any = {}
        self._app_file = _LogFile(label="", filename="")
        self._thread_files: list[_LogFile] = []
        self._open_failures = 0
        self._directory_failures = 0

        self.level = LogLevel.DEBUG
        self.output = LogOutput.BOTH
        self.granularity = TimestampGranularity.NANOSECOND
        self.use_ansi_colours = False
        self.leading_zeros = DEFAULT_INDEX_WIDTH
        self.log_file_size = DEFAULT_LOG_FILE_SIZE
        self.purge_logs_on_restart = False
        self.trace_all = False

    # -- configuration -----------------------------------------------------

    def _config_value(self, section: str, key: str) -> Any:
        config = self._config
        if section not in config:
            return None
        return config[section].get(key)

    def _config_string(self, section: str, key: str) -> str | None:
        value = self._config_value(section, key)
        return None if value is None else str(value)

    def _config_bool(self, section: str, key: str, default: bool) -> bool:
        value = self._config_value(section, key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in ("true", "yes", "on", "1"):
            return True
        if text in ("false", "no", "off", "0"):
            return False
        return default

    def _config_int(self, section: str, key: str, default: int) -> int:
        value = self._config_value(section, key)
        if value is None:
            return default
        try:
            return int(str(value).strip())
        except ValueError:
            return default

    @staticmethod
    def _join_log_name(path: str, name: str) -> str:
        return sanitise_path(f"{path}{PATH_SEPARATOR}{name}")

    def configure(self, config: Mapping[str, Mapping[str, Any]]) -> str:
        """Apply the ``logger`` section of a configuration and start queueing.

        ``config`` maps section names to key/value mappings (a ConfigParser
        works). Returns a message describing the result.
        """
        with self._lock:
            self._config = config
            self.purge_logs_on_restart = self._config_bool(
                "logger", "purge_logs_on_restart", self.purge_logs_on_restart
            )
            self.output = log_output_from_string(
                self._config_string("logger", "log_destination"), LogOutput.SCREEN
            )
            self.granularity = timestamp_granularity_from_string(
                self._config_string("logger", "timestamp_granularity"),
                TimestampGranularity.NANOSECOND,
            )
            self.use_ansi_colours = self._config_bool(
                "logger", "ansi_colours", self.use_ansi_colours
            )
            self.leading_zeros = self._config_int(
                "logger", "log_leading_zeros", self.leading_zeros
            )
            self.log_file_size = self._config_int(
                "logger", "log_file_size", self.log_file_size
            )

            path = self._config_string("logger", CONFIG_LOG_PATH_KEY) or ""
            name = self._config_string("logger", CONFIG_LOG_FILE_KEY)
            if name is None:
                name = DEFAULT_LOG_FILE_NAME

            self._app_file.close()
            self._queue_started = True
            if not name:
                self._app_file.filename = ""
                return "Logger init failed to obtain a filename for logging from config"

            filename = self._join_log_name(path, name) if path else name
            self._app_file.filename = sanitise_path(filename)
            return f"Logger initialised. App logging to {self._app_file.filename}"

    def set_thread_log_file(self, label: str, filename: str) -> None:
        """Give a thread its own log file; ignored once the thread limit is reached."""
        with self._lock:
            if len(self._thread_files) >= MAX_THREADS:
                return
            self._thread_files.append(_LogFile(label=label, filename=filename))

    def set_thread_log_file_from_config(self, thread_label: str) -> None:
        """Read a thread's log file, the log level and tracing from the configuration."""
        thread_file = self._config_string(
            "logger", f"{thread_label}.{CONFIG_LOG_FILE_KEY}"
        )
        thread_path = self._config_string("logger", CONFIG_LOG_PATH_KEY)

        self.level = log_level_from_string(
            self._config_string("logger", "log_level"), LogLevel.INFO
        )
        self.trace_all = self._config_bool("debug", "trace_on", False)

        if thread_file:
            if thread_path:
                self.set_thread_log_file(
                    thread_label, self._join_log_name(thread_path, thread_file)
                )
            else:
                self.set_thread_log_file(thread_label, thread_file)

    @property
    def thread_log_files(self) -> list[tuple[str, str]]:
        """The registered (thread label, file name) pairs."""
        with self._lock:
            return [(f.label, f.filename) for f in self._thread_files]

    def set_level(self, level: LogLevel) -> None:
        """Set the lowest level that is logged."""
        self.level = LogLevel(level)

    def set_output(self, output: LogOutput) -> None:
        """Set where log messages are written."""
        self.output = LogOutput(output)

    # -- entries -----------------------------------------------------------

    def _next_index(self) -> int:
        with self._counter_lock:
            return next(self._counter)

    def create_entry(self, level: LogLevel, message: str) -> LogEntry:
        """Build an entry stamped with the next index, the time and the thread label."""
        label = get_thread_label() or "UNKNOWN"
        return LogEntry(
            index=self._next_index(),
            level=LogLevel(level),
            timestamp=time.time_ns(),
            message=message[: LOG_MSG_BUFFER_SIZE - 1],
            thread_label=label[: THREAD_LABEL_SIZE - 1],
        )

    def log(self, level: LogLevel, message: str, *args: Any) -> None:
        """Log a %-style message if its level is at or above the current level."""
        if level < self.level:
            return
        text = message % args if args else message
        if level == LogLevel.TRACE or self.trace_all:
            frame = inspect.currentframe()
            caller = frame.f_back if frame is not None else None
            if caller is not None:
                location = os.path.basename(caller.f_code.co_filename)
                text = f"[{location}:{caller.f_lineno}] {text}"
            del frame, caller
        entry = self.create_entry(level, text)
        if self._queue_started:
            self._queue.push(entry)
        else:
            self._log_immediately(entry)

    def log_now(self, entry: LogEntry) -> None:
        """Publish an entry at once, bypassing the queue."""
        self._log_immediately(entry)

    def flush_queue(self) -> int:
        """Publish every queued entry in order; return how many were published."""
        published = 0
        while (entry := self._queue.pop()) is not None:
            self._log_immediately(entry)
            published += 1
        return published

    def _on_queue_overflow(self) -> None:
        entry = self.create_entry(
            LogLevel.ERROR, "Log queue overflow. Discarding oldest log entry."
        )
        self._log_immediately(entry)

    # -- files -------------------------------------------------------------

    def _report(self, text: str) -> None:
        sys.stderr.write(text)
        sys.stderr.flush()

    def _open_if_needed(self, log_file: _LogFile) -> bool:
        if log_file.handle is not None:
            return True

        directory = strip_directory_path(log_file.filename)
        try:
            create_directories(directory)
        except OSError:
            if self._directory_failures < MAX_DIRECTORY_FAILURE_REPORTS:
                self._report(
                    f"Failed to create directory structure for logging: {directory}\n"
                )
                self._directory_failures += 1

        mode = "w" if self.purge_logs_on_restart else "a"
        try:
            log_file.handle = open(log_file.filename, mode, encoding="utf-8")
        except OSError as exc:
            if self._open_failures == 0:
                self._report(f"Failed to open log file: {log_file.filename}\n")
            self._open_failures += 1
            if self._open_failures >= MAX_LOG_FAILURES:
                raise RuntimeError(
                    f"Unrecoverable failure to open log file: {log_file.filename}"
                ) from exc
            return False
        self._open_failures = 0
        return True

    def _rotate_if_needed(self, log_file: _LogFile) -> None:
        with self._lock:
            try:
                size = os.stat(log_file.filename).st_size
            except OSError:
                return
            if size < self.log_file_size:
                return
            log_file.close()
            rotated = time.strftime("log_%Y-%m-%d.txt") + ".old"
            try:
                os.replace(log_file.filename, rotated)
            except OSError:
                pass
            try:
                log_file.handle = open(log_file.filename, "a", encoding="utf-8")
            except OSError:
                log_file.handle = None

    def _log_immediately(self, entry: LogEntry) -> None:
        with self._lock:
            label = entry.thread_label or get_thread_label()
            target = self._app_file

            if target.handle is not None:
                self._rotate_if_needed(target)
            if not self._open_if_needed(target):
                self.output = LogOutput.SCREEN

            for thread_file in self._thread_files:
                if label and str_cmp_nocase(thread_file.label, label) == 0:
                    if thread_file.handle is not None:
                        self._rotate_if_needed(thread_file)
                    if not self._open_if_needed(thread_file):
                        self._report(
                            f"File Error: Could not open log file for thread {label}\n"
                        )
                    target = thread_file
                    break

            if self.output in (LogOutput.FILE, LogOutput.BOTH) and target.handle:
                line = format_entry(entry, self.granularity, self.leading_zeros, None)
                target.handle.write(line + "\n")
                target.handle.flush()

            if self.output in (LogOutput.SCREEN, LogOutput.BOTH):
                stream = self._stream if self._stream is not None else sys.stderr
                colour = level_colour(entry.level, self.use_ansi_colours)
                line = format_entry(entry, self.granularity, self.leading_zeros, colour)
                stream.write(line + "\n")
                stream.flush()

    def close(self) -> None:
        """Publish what is queued, then close every log file."""
        self.flush_queue()
        with self._lock:
            self._app_file.close()
            for thread_file in self._thread_files:
                thread_file.close()
            self._thread_files.clear()
            self._queue_started = False

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
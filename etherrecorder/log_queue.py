"""Bounded FIFO of log entries that drops the oldest entry when full."""

from __future__ import annotations

import threading
from collections import deque
from typing import Callable

from etherrecorder.levels import LogEntry

LOG_QUEUE_SIZE = 10000


class LogQueue:
    """Thread-safe ring of log entries holding at most ``size - 1`` of them.

    When a push finds the queue full, the oldest entry is discarded and the
    ``on_overflow`` callback, if any, is called after the push completes.
    """

    def __init__(
        self,
        size: int = LOG_QUEUE_SIZE,
        on_overflow: Callable[[], None] | None = None,
    ) -> None:
        if size < 2:
            raise ValueError("log queue size must be at least 2")
        self._capacity = size - 1
        self._entries: deque[LogEntry] = deque()
        self._lock = threading.Lock()
        self._on_overflow = on_overflow

    @property
    def capacity(self) -> int:
        """Largest number of entries the queue holds at once."""
        return self._capacity

    def push(self, entry: LogEntry) -> None:
        """Append an entry, discarding the oldest one if the queue is full."""
        if not isinstance(entry, LogEntry):
            raise TypeError("only LogEntry objects can be queued")
        with self._lock:
            overflowed = len(self._entries) >= self._capacity
            if overflowed:
                self._entries.popleft()
            self._entries.append(entry)
        if overflowed and self._on_overflow is not None:
            self._on_overflow()

    def pop(self) -> LogEntry | None:
        """Remove and return the oldest entry, or None if the queue is empty."""
        with self._lock:
            if not self._entries:
                return None
            return self._entries.popleft()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
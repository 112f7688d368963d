"""Small cross-platform helpers for paths, strings, randomness and time."""

from __future__ import annotations

import os
import secrets
import time

PATH_SEPARATOR = os.sep

_SEPARATORS = "/\\"


def sanitise_path(path: str) -> str:
    """Trim whitespace and trailing separators, and use the platform separator."""
    cleaned = path.strip().rstrip(_SEPARATORS)
    return "".join(PATH_SEPARATOR if ch in _SEPARATORS else ch for ch in cleaned)


def strip_directory_path(full_file_path: str) -> str:
    """Return the part of a path before its last platform separator, or ''."""
    directory, separator, _ = full_file_path.rpartition(PATH_SEPARATOR)
    return directory if separator else ""


def create_directories(path: str) -> None:
    """Create a directory and all of its parents; existing ones are accepted."""
    if not path:
        return
    target = path
    if len(target) > 1 and target[-1] in _SEPARATORS:
        target = target[:-1]
    try:
        os.makedirs(target, exist_ok=True)
    except FileExistsError:
        pass


def str_cmp_nocase(s1: str, s2: str) -> int:
    """Compare two strings ignoring case: 0 if equal, negative or positive otherwise."""
    lower1, lower2 = s1.lower(), s2.lower()
    for c1, c2 in zip(lower1, lower2):
        if c1 != c2:
            return ord(c1) - ord(c2)
    common = min(len(lower1), len(lower2))
    tail1 = ord(lower1[common]) if len(lower1) > common else 0
    tail2 = ord(lower2[common]) if len(lower2) > common else 0
    return tail1 - tail2


def platform_random() -> int:
    """Return a random unsigned 32-bit number from the system's secure source."""
    return secrets.randbits(32)


def platform_random_range(low: int, high: int) -> int:
    """Return a random number in the inclusive range; the bounds may be given in any order."""
    if low > high:
        low, high = high, low
    return low + platform_random() % (high - low + 1)


def get_current_time() -> str:
    """Return the local time formatted as YYYY-mm-dd HH:MM:SS."""
    try:
        return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
    except (OverflowError, OSError, ValueError):
        return "1970-01-01 00:00:00"


def resolve_full_path(filename: str) -> str:
    """Return the absolute path of a file or directory.

    On POSIX systems the path must exist, otherwise OSError is raised.
    """
    if os.name == "nt":
        return os.path.abspath(filename)
    return os.path.realpath(filename, strict=True)


def sleep_ms(milliseconds: int) -> None:
    """Sleep for a number of milliseconds."""
    time.sleep(max(0, int(milliseconds)) / 1000.0)


def sleep_seconds(seconds: float) -> None:
    """Sleep for a number of seconds, truncated to whole milliseconds."""
    sleep_ms(int(seconds * 1000))
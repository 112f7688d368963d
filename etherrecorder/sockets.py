"""Socket error codes, messages and blocking-mode helpers."""

from __future__ import annotations

import enum
import os
import socket


class PlatformSocketError(enum.IntEnum):
    """Error codes for socket operations."""

    SUCCESS = 0
    CREATE = -1
    RESOLVE = -2
    BIND = -3
    LISTEN = -4
    CONNECT = -5
    TIMEOUT = -6
    SEND = -7
    RECV = -8
    SELECT = -9
    GETSOCKOPT = -10


_MESSAGES = {
    PlatformSocketError.SUCCESS: "Success",
    PlatformSocketError.CREATE: "Error creating socket",
    PlatformSocketError.RESOLVE: "Error resolving address",
    PlatformSocketError.BIND: "Error binding socket",
    PlatformSocketError.LISTEN: "Error listening on socket",
    PlatformSocketError.CONNECT: "Error connecting to socket",
    PlatformSocketError.TIMEOUT: "Socket operation timed out",
    PlatformSocketError.SEND: "Error sending data",
    PlatformSocketError.RECV: "Error receiving data",
    PlatformSocketError.SELECT: "Error with select operation",
    PlatformSocketError.GETSOCKOPT: "Error getting socket options",
}


def socket_strerror(error: int) -> str:
    """Return a human-readable description of a socket error code."""
    try:
        return _MESSAGES[PlatformSocketError(error)]
    except ValueError:
        return "Unknown socket error"


class PlatformSocketException(Exception):
    """Raised when a socket operation fails with a known error code."""

    def __init__(self, error: PlatformSocketError, detail: str | None = None) -> None:
        self.error = PlatformSocketError(error)
        self.detail = detail
        text = socket_strerror(self.error)
        if detail:
            text = f"{text}: {detail}"
        super().__init__(text)


def socket_error_message(error_code: int) -> str:
    """Describe an operating-system socket error number."""
    try:
        description = os.strerror(error_code)
    except (ValueError, OverflowError):
        description = "Unknown error"
    return f"Socket operation failed with error: {error_code}: {description}"


def set_non_blocking_mode(sock: socket.socket) -> None:
    """Put a socket into non-blocking mode."""
    sock.setblocking(False)


def restore_blocking_mode(sock: socket.socket) -> None:
    """Return a socket to blocking mode."""
    sock.setblocking(True)
"""Process-wide shutdown signalling triggered by Ctrl-C or by code."""

from __future__ import annotations

import logging
import signal
import sys
import threading
from types import FrameType
from typing import Any

_log = logging.getLogger(__name__)


class ShutdownHandler:
    """Holds a shutdown flag that threads can poll or wait on."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._previous: Any = None
        self._installed = False

    def _on_interrupt(self, signum: int, frame: FrameType | None) -> None:
        sys.stderr.write("\nCTRL-C detected. Initiating shutdown...\n")
        sys.stderr.flush()
        self.signal()

    def install(self) -> None:
        """Catch Ctrl-C (SIGINT) and turn it into a shutdown signal.

        Raises RuntimeError if the handler cannot be registered.
        """
        if self._installed:
            return
        try:
            self._previous = signal.signal(signal.SIGINT, self._on_interrupt)
        except (ValueError, OSError) as exc:
            _log.error("Could not set control handler")
            raise RuntimeError("Could not set control handler") from exc
        self._installed = True

    def signal(self) -> None:
        """Signal that shutdown should begin."""
        self._event.set()

    def is_signalled(self) -> bool:
        """Return True once shutdown has been signalled."""
        return self._event.is_set()

    def wait(self, timeout_ms: int) -> bool:
        """Block until shutdown is signalled or the timeout expires.

        A timeout of -1 waits forever. Returns True if shutdown was signalled.
        """
        timeout = None if timeout_ms < 0 else timeout_ms / 1000.0
        if self._event.wait(timeout):
            return True
        _log.debug("Wait for shutdown timed out (%d ms)", timeout_ms)
        return False

    def cleanup(self) -> None:
        """Restore the previous Ctrl-C handler."""
        if not self._installed:
            return
        previous = self._previous if self._previous is not None else signal.SIG_DFL
        signal.signal(signal.SIGINT, previous)
        self._previous = None
        self._installed = False

    def __enter__(self) -> "ShutdownHandler":
        self.install()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()
"""Command client that talks to the recorder's command interface."""

from __future__ import annotations

import argparse
import re
import socket
import sys
import threading
from typing import Callable

from etherrecorder.levels import LogLevel, log_level_from_string
from etherrecorder.profile import load_profile
from etherrecorder.protocol import MessageEncoder, PacketError, decode_packet
from etherrecorder.sockets import PlatformSocketError, PlatformSocketException

RECEIVE_BUFFER_SIZE = 1024
ABOUT_TEXT = "EtherRecorderGUI v1.0\nA dialog-based application with menus."

_LEVEL_COMMANDS = {
    LogLevel.TRACE: "log_level=TRACE",
    LogLevel.DEBUG: "log_level=DEBUG",
    LogLevel.INFO: "log_level=INFO",
    LogLevel.NOTICE: "log_level=NOTICE",
    LogLevel.WARN: "log_level=WARNING",
    LogLevel.ERROR: "log_level=ERROR",
    LogLevel.CRITICAL: "log_level=CRITICAL",
    LogLevel.FATAL: "log_level=FATAL",
}

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def log_level_command(level: LogLevel) -> str:
    """Return the command text that sets the recorder's log level."""
    try:
        return _LEVEL_COMMANDS[LogLevel(level)]
    except (ValueError, KeyError) as exc:
        raise ValueError(f"unknown log level: {level!r}") from exc


def _parse_port(text: str) -> int:
    """Read a leading integer from text, giving 0 when there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


class Session:
    """A connection to the command interface plus a running text log.

    Log lines are appended with a leading CR LF, as the log is shown as one
    block of text.
    """

    def __init__(
        self,
        connect_timeout: float | None = 5.0,
        receive_timeout: float | None = None,
        on_log: Callable[[str], None] | None = None,
    ) -> None:
        self.connect_timeout = connect_timeout
        self.receive_timeout = receive_timeout
        self.on_log = on_log
        self._sock: socket.socket | None = None
        self._encoder = MessageEncoder()
        self._log: list[str] = []
        self._lock = threading.Lock()

    @property
    def log(self) -> str:
        """All text logged so far."""
        with self._lock:
            return "".join(self._log)

    def append_log(self, text: str) -> None:
        """Append text to the log as it is."""
        with self._lock:
            self._log.append(text)
        if self.on_log is not None:
            self.on_log(text)

    def _note(self, text: str) -> None:
        self.append_log("\r\n" + text)

    def connect(self, host: str, port: int | str) -> None:
        """Connect to the server; the port may be given as text."""
        if self._sock is not None:
            raise PlatformSocketException(PlatformSocketError.CREATE, "already connected")
        port_text = str(port)
        self._note(f"Connecting to {host}:{port_text}")
        try:
            sock = socket.create_connection(
                (host, _parse_port(port_text)), timeout=self.connect_timeout
            )
        except (OSError, OverflowError) as exc:
            code = getattr(exc, "errno", None) or 0
            self._note(f"Connection failed with error: {code}")
            raise PlatformSocketException(PlatformSocketError.CONNECT, str(exc)) from exc
        sock.settimeout(self.receive_timeout)
        self._sock = sock
        self._note("Connected to server.")

    def disconnect(self) -> None:
        """Close the connection if there is one."""
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()

    def is_connected(self) -> bool:
        """Return True while the socket is open and reports no error."""
        sock = self._sock
        if sock is None:
            return False
        try:
            if sock.fileno() < 0:
                return False
            return sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR) == 0
        except OSError:
            return False

    def _require_socket(self, error: PlatformSocketError) -> socket.socket:
        sock = self._sock
        if sock is None:
            raise PlatformSocketException(error, "not connected")
        return sock

    def send_command(self, command: str) -> None:
        """Send a command framed as a message with the next message index."""
        if not command:
            raise ValueError("No command to send.")
        sock = self._require_socket(PlatformSocketError.SEND)
        packet = self._encoder.encode(command)
        try:
            sock.sendall(packet)
        except OSError as exc:
            raise PlatformSocketException(PlatformSocketError.SEND, str(exc)) from exc

    def send_raw(self, data: str | bytes) -> None:
        """Send data without framing and log it."""
        if isinstance(data, str):
            payload, text = data.encode("ascii", errors="replace"), data
        else:
            payload, text = bytes(data), bytes(data).decode("latin-1")
        sock = self._require_socket(PlatformSocketError.SEND)
        try:
            sock.sendall(payload)
        except OSError as exc:
            raise PlatformSocketException(PlatformSocketError.SEND, str(exc)) from exc
        self._note("Sent: " + text)

    def _closed(self, sock: socket.socket, code: int) -> None:
        if self._sock is not sock:
            return
        self._note(f"Socket disconnected (error code: {code})")
        self._sock = None
        sock.close()

    def receive(self) -> str | None:
        """Read one packet and return its text.

        Returns None when nothing arrived in time, the packet was invalid or
        incomplete, or the server closed the connection.
        """
        sock = self._require_socket(PlatformSocketError.RECV)
        try:
            data = sock.recv(RECEIVE_BUFFER_SIZE)
        except TimeoutError:
            return None
        except OSError as exc:
            self._closed(sock, exc.errno or 0)
            return None
        if not data:
            self._closed(sock, 0)
            return None
        try:
            _, text = decode_packet(data)
        except PacketError:
            return None
        self._note("Received: " + text)
        return text


def _receive_loop(session: Session) -> None:
    while session.is_connected():
        try:
            session.receive()
        except PlatformSocketException:
            break


def _print_log(text: str) -> None:
    print(text.replace("\r\n", "\n").lstrip("\n"), flush=True)


def main(argv: list[str] | None = None) -> int:
    """Connect to the recorder and send each line of standard input as a command."""
    parser = argparse.ArgumentParser(
        prog="etherrecorder-client",
        description="Send commands to the recorder's command interface. "
        "Type /level NAME to set the log level, /about, or /quit.",
    )
    parser.add_argument("--profile", help="INI profile with a [network] section")
    parser.add_argument("--host", help="server host (default from the profile)")
    parser.add_argument("--port", help="server port (default from the profile)")
    parser.add_argument("--timeout", type=float, default=5.0, help="connect timeout in seconds")
    args = parser.parse_args(argv)

    profile = load_profile(args.profile)
    host = args.host or profile.ip
    port = args.port or profile.port

    session = Session(connect_timeout=args.timeout, receive_timeout=0.2, on_log=_print_log)
    try:
        session.connect(host, port)
    except PlatformSocketException as exc:
        print(f"Failed to connect: {exc}", file=sys.stderr)
        return 1

    receiver = threading.Thread(target=_receive_loop, args=(session,), daemon=True)
    receiver.start()
    status = 0
    try:
        for raw_line in sys.stdin:
            line = raw_line.rstrip("\r\n")
            if line == "/quit":
                break
            if line == "/about":
                print(ABOUT_TEXT)
                continue
            if line.startswith("/level"):
                name = line[len("/level"):].strip()
                level = log_level_from_string(name, None)  # type: ignore[arg-type]
                if level is None:
                    print(f"Unknown log level: {name}", file=sys.stderr)
                    continue
                line = log_level_command(level)
            try:
                session.send_command(line)
            except ValueError as exc:
                print(exc, file=sys.stderr)
            except PlatformSocketException as exc:
                print(f"Failed to send data: {exc}", file=sys.stderr)
                status = 1
                break
    finally:
        session.disconnect()
        receiver.join(timeout=2.0)
    return status
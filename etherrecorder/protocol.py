"""Framed wire messages exchanged with the recorder's command interface.

A packet is laid out big-endian as::

    start marker (4) | packet length (4) | message index (4) | text | end marker (4)

where the packet length counts every byte, markers included.
"""

from __future__ import annotations

import struct
import threading

START_MARKER = 0xBAADF00D
END_MARKER = 0xDEADBEEF
HEADER_SIZE = 12
TRAILER_SIZE = 4
MIN_PACKET_SIZE = HEADER_SIZE + TRAILER_SIZE

_HEADER = struct.Struct(">III")
_TRAILER = struct.Struct(">I")
_INDEX_MASK = 0xFFFFFFFF


class PacketError(ValueError):
    """Raised when received bytes do not hold a valid packet.

    ``incomplete`` is True when the bytes may become a valid packet once more
    data arrives, and False when the packet is malformed.
    """

    def __init__(self, message: str, *, incomplete: bool = False) -> None:
        super().__init__(message)
        self.incomplete = incomplete


def encode_message(text: str, index: int) -> bytes:
    """Frame a text message with the given message index.

    Characters outside ASCII are sent as '?'.
    """
    payload = text.encode("ascii", errors="replace")
    total = MIN_PACKET_SIZE + len(payload)
    header = _HEADER.pack(START_MARKER, total, index & _INDEX_MASK)
    return header + payload + _TRAILER.pack(END_MARKER)


def decode_packet(data: bytes) -> tuple[int, str]:
    """Parse one packet from the start of ``data``; return (index, text).

    Bytes after the packet are ignored. The text ends at the first NUL byte.
    """
    if len(data) < MIN_PACKET_SIZE:
        raise PacketError("packet shorter than the minimum size", incomplete=True)

    start, length, index = _HEADER.unpack_from(data, 0)
    if start != START_MARKER:
        raise PacketError(f"invalid start marker 0x{start:08X}")
    if length > len(data):
        raise PacketError("packet not yet completely received", incomplete=True)
    if length < MIN_PACKET_SIZE:
        raise PacketError(f"invalid packet length {length}")

    payload_end = length - TRAILER_SIZE
    payload = data[HEADER_SIZE:payload_end]
    (end,) = _TRAILER.unpack_from(data, payload_end)
    if end != END_MARKER:
        raise PacketError(f"invalid end marker 0x{end:08X}")

    text = payload.split(b"\0", 1)[0].decode("latin-1")
    return index, text


class MessageEncoder:
    """Frames messages with a message index that rises by one per message."""

    def __init__(self, first_index: int = 1) -> None:
        self._next = first_index & _INDEX_MASK
        self._lock = threading.Lock()

    @property
    def next_index(self) -> int:
        """The index the next encoded message will carry."""
        with self._lock:
            return self._next

    def encode(self, text: str) -> bytes:
        """Frame ``text`` with the next index and advance the index."""
        with self._lock:
            index = self._next
            self._next = (index + 1) & _INDEX_MASK
        return encode_message(text, index)
"""Line-oriented framing over a TCP socket, shared by the client and server."""

from __future__ import annotations

import select
import socket

CRLF = "\r\n"
LF = "\n"
ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class ConnectionClosed(ConnectionError):
    """Raised when the peer closes the connection before a read completes."""


def split_on_char(text: str, sep: str) -> list[str]:
    """Split ``text`` on ``sep`` the way a line-by-line reader would.

    An empty string yields no fields and a trailing separator does not
    produce a trailing empty field; empty fields in between are kept.
    """
    if not text:
        return []
    parts = text.split(sep)
    if text.endswith(sep):
        parts.pop()
    return parts


class LineStream:
    """A buffered reader and writer of CRLF lines and raw bytes on a socket."""

    chunk_size = 4096

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._buffer = bytearray()

    def __enter__(self) -> LineStream:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _fill(self) -> bool:
        data = self._sock.recv(self.chunk_size)
        if not data:
            return False
        self._buffer += data
        return True

    def read_line(self) -> str:
        """Return the next line without its line ending.

        Raises ConnectionClosed if the connection ended with nothing left to read.
        """
        while True:
            end = self._buffer.find(b"\n")
            if end >= 0:
                raw = bytes(self._buffer[:end])
                del self._buffer[: end + 1]
                break
            if not self._fill():
                if not self._buffer:
                    raise ConnectionClosed("connection closed by peer")
                raw = bytes(self._buffer)
                self._buffer.clear()
                break
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        return raw.decode(ENCODING, _ERRORS)

    def read_exact(self, size: int) -> bytes:
        """Return exactly ``size`` bytes, waiting for them as needed."""
        size = max(size, 0)
        while len(self._buffer) < size:
            if not self._fill():
                raise ConnectionClosed(
                    f"connection closed after {len(self._buffer)} of {size} bytes"
                )
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def write_line(self, text: str) -> None:
        """Send ``text`` followed by CRLF."""
        self._sock.sendall((text + CRLF).encode(ENCODING, _ERRORS))

    def write(self, data: bytes) -> None:
        """Send raw bytes."""
        self._sock.sendall(data)

    def has_pending(self, timeout: float = 0.0) -> bool:
        """Tell whether data is buffered or arrives within ``timeout`` seconds."""
        if self._buffer:
            return True
        readable, _, _ = select.select([self._sock], [], [], timeout)
        return bool(readable)

    def close(self) -> None:
        """Close the underlying socket."""
        self._sock.close()
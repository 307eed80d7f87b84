"""Low-level socket read/write utilities and HTTP message framing."""

from __future__ import annotations

import socket
from enum import Enum
from typing import Protocol

from config import MAX_BODY_BYTES, MAX_HEADER_BYTES, READ_CHUNK_SIZE
from response import HTTPResponse

HEADER_TERMINATOR = b"\r\n\r\n"


class HTTPReadError(Exception):
    """Raised when an HTTP message cannot be safely read from the socket."""


class ConnectionClosedError(HTTPReadError):
    """Raised when the peer closed the connection before sending anything."""


class ConnectionReadError(HTTPReadError):
    """Raised when reading failed before any byte was received."""


class IncompleteRequestError(HTTPReadError):
    """Raised when the stream ended or failed in the middle of a message."""


class MalformedRequestError(HTTPReadError):
    """Raised when the buffered header block cannot be framed."""


class HeaderTooLargeError(MalformedRequestError):
    """Raised when HTTP headers exceed configured maximum size."""


class PayloadTooLargeError(MalformedRequestError):
    """Raised when the declared body exceeds configured maximum size."""


class SocketTimeoutError(HTTPReadError):
    """Raised when a client times out while sending request bytes."""


class ByteSource(Protocol):
    def recv(self, bufsize: int, /) -> bytes: ...


class FramingState(Enum):
    AWAITING_HEADERS = "awaiting_headers"
    AWAITING_BODY = "awaiting_body"
    COMPLETE = "complete"


def extract_content_length(header_bytes: bytes) -> int:
    """Return the declared Content-Length of a header block, or 0."""
    declared: int | None = None
    for line in header_bytes.decode("iso-8859-1").split("\r\n")[1:]:
        if not line:
            continue
        if ":" not in line:
            raise MalformedRequestError("Malformed header while reading message")
        name, value = line.split(":", 1)
        if name.strip().lower() != "content-length":
            continue
        token = value.strip()
        if not token.isascii() or not token.isdigit():
            raise MalformedRequestError(f"Invalid Content-Length header {token!r}")
        parsed_length = int(token)
        if declared is not None and declared != parsed_length:
            raise MalformedRequestError("Conflicting Content-Length headers")
        declared = parsed_length
    return declared or 0


class MessageFramer:
    """Accumulates bytes until one Content-Length framed message is buffered.

    The framer never touches a socket: feed it chunks as they arrive and
    inspect ``state``. Bytes past the declared body are discarded; a
    connection carries exactly one message.
    """

    def __init__(
        self,
        *,
        max_header_bytes: int = MAX_HEADER_BYTES,
        max_body_bytes: int = MAX_BODY_BYTES,
    ) -> None:
        self._max_header_bytes = max_header_bytes
        self._max_body_bytes = max_body_bytes
        self._buffer = bytearray()
        self._header_end: int | None = None
        self._content_length = 0
        self.state = FramingState.AWAITING_HEADERS

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    @property
    def remaining(self) -> int:
        """Body bytes still expected; zero until the header block is parsed."""
        if self._header_end is None:
            return 0
        body_start = self._header_end + len(HEADER_TERMINATOR)
        return max(0, body_start + self._content_length - len(self._buffer))

    def feed(self, chunk: bytes) -> FramingState:
        if self.state is FramingState.COMPLETE:
            return self.state
        self._buffer.extend(chunk)

        if self.state is FramingState.AWAITING_HEADERS:
            # A terminator may straddle the previous chunk boundary.
            search_from = max(0, len(self._buffer) - len(chunk) - len(HEADER_TERMINATOR) + 1)
            header_end = self._buffer.find(HEADER_TERMINATOR, search_from)
            if header_end == -1:
                if len(self._buffer) > self._max_header_bytes:
                    raise HeaderTooLargeError("Headers exceeded MAX_HEADER_BYTES")
                return self.state
            if header_end + len(HEADER_TERMINATOR) > self._max_header_bytes:
                raise HeaderTooLargeError("Headers exceeded MAX_HEADER_BYTES")

            content_length = extract_content_length(bytes(self._buffer[:header_end]))
            if content_length > self._max_body_bytes:
                raise PayloadTooLargeError("Body exceeded MAX_BODY_BYTES")
            self._header_end = header_end
            self._content_length = content_length
            self.state = FramingState.AWAITING_BODY

        if self.remaining == 0:
            self.state = FramingState.COMPLETE
        return self.state

    def close(self) -> tuple[bytes, bytes]:
        """Handle an orderly end of stream from the peer."""
        if self.state is FramingState.COMPLETE:
            return self.message()
        if not self._buffer:
            raise ConnectionClosedError("Connection closed before any request bytes")
        raise IncompleteRequestError(
            f"Connection closed in state {self.state.value} "
            f"after {len(self._buffer)} bytes"
        )

    def message(self) -> tuple[bytes, bytes]:
        """Return ``(header_block, body)`` of the completed message."""
        if self.state is not FramingState.COMPLETE or self._header_end is None:
            raise IncompleteRequestError("Message is not complete")
        body_start = self._header_end + len(HEADER_TERMINATOR)
        head = bytes(self._buffer[: self._header_end])
        body = bytes(self._buffer[body_start : body_start + self._content_length])
        return head, body


def read_http_message(
    source: ByteSource,
    *,
    read_size: int = READ_CHUNK_SIZE,
    framer: MessageFramer | None = None,
) -> tuple[bytes, bytes]:
    """Read one Content-Length framed HTTP message from ``source``."""
    framer = framer or MessageFramer()
    while framer.state is not FramingState.COMPLETE:
        try:
            chunk = source.recv(read_size)
        except socket.timeout as exc:
            raise SocketTimeoutError("Timed out waiting for message bytes") from exc
        except OSError as exc:
            if framer.buffered:
                raise IncompleteRequestError(
                    f"Read failed after {framer.buffered} bytes: {exc}"
                ) from exc
            raise ConnectionReadError(f"Read failed: {exc}") from exc

        if not chunk:
            return framer.close()
        framer.feed(chunk)
    return framer.message()


def write_http_response_message(client_socket: socket.socket, response: HTTPResponse) -> int:
    """Write the complete response to a client socket and return bytes sent."""
    payload = response.to_bytes()
    client_socket.sendall(payload)
    return len(payload)

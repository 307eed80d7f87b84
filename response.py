"""HTTP response model and serializer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

REASON_PHRASES: dict[int, str] = {
    200: "OK",
    201: "Created",
    400: "Bad Request",
    404: "Not Found",
}
UNKNOWN_REASON = "Unknown"


def reason_phrase(status_code: int) -> str:
    return REASON_PHRASES.get(status_code, UNKNOWN_REASON)


@dataclass(slots=True)
class HTTPResponse:
    status_code: int
    content_type: str = "text/plain; charset=utf-8"
    body: bytes | str = b""
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")

    @classmethod
    def json(
        cls,
        payload: Any,
        *,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> "HTTPResponse":
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        return cls(
            status_code=status_code,
            content_type="application/json",
            body=body,
            headers=dict(headers or {}),
        )

    @classmethod
    def html(cls, text: str, *, status_code: int = 200) -> "HTTPResponse":
        return cls(
            status_code=status_code,
            content_type="text/html; charset=UTF-8",
            body=text,
        )

    def to_bytes(self) -> bytes:
        """Serialize the response into HTTP/1.1 wire format bytes.

        The head carries the status line, Content-Type, a Content-Length equal
        to the body size and any extra headers; the body follows the blank
        line with no further framing.
        """
        body = self.body if isinstance(self.body, bytes) else self.body.encode("utf-8")
        header_lines = [
            f"HTTP/1.1 {self.status_code} {reason_phrase(self.status_code)}",
            f"Content-Type: {self.content_type}",
            f"Content-Length: {len(body)}",
        ]
        header_lines.extend(
            f"{key}: {value}"
            for key, value in self.headers.items()
            if key.lower() not in {"content-type", "content-length"}
        )
        head = "\r\n".join(header_lines).encode("iso-8859-1") + b"\r\n\r\n"
        return head + body

"""HTTP request model and parser."""

from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlsplit

from socket_handler import HEADER_TERMINATOR, MalformedRequestError, extract_content_length

KNOWN_METHODS = {"GET", "POST"}


class HTTPRequestParseError(ValueError):
    """Request parse error carrying an HTTP status code."""

    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class HTTPRequest:
    method: str
    path: str
    http_version: str
    raw_target: str = "/"
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    query_params: dict[str, list[str]] = field(default_factory=dict)
    path_params: dict[str, str] = field(default_factory=dict)

    @property
    def is_known_method(self) -> bool:
        return self.method in KNOWN_METHODS

    @classmethod
    def from_message(cls, head: bytes, body: bytes) -> "HTTPRequest":
        """Build a request from a framed header block and its body."""
        lines = head.decode("iso-8859-1").split("\r\n")
        if not lines or not lines[0]:
            raise HTTPRequestParseError("Missing request line")

        first_line_parts = lines[0].split(" ")
        if len(first_line_parts) != 3:
            raise HTTPRequestParseError("Invalid request line")

        method, target, http_version = first_line_parts
        if not method or not target or not http_version:
            raise HTTPRequestParseError("Request line contains empty tokens")
        if not http_version.startswith("HTTP/"):
            raise HTTPRequestParseError("Invalid protocol token")

        try:
            parsed_target = urlsplit(target)
            query_params = parse_qs(parsed_target.query, keep_blank_values=True)
        except ValueError as exc:
            raise HTTPRequestParseError(f"Invalid request target: {exc}") from exc
        path = parsed_target.path or "/"

        headers: dict[str, str] = {}
        for line in lines[1:]:
            if not line:
                continue
            if ":" not in line:
                raise HTTPRequestParseError("Malformed header line")
            name, value = line.split(":", 1)
            header_name = name.strip().lower()
            if not header_name:
                raise HTTPRequestParseError("Header name cannot be empty")
            headers[header_name] = value.strip()

        return cls(
            method=method.upper(),
            path=path,
            raw_target=target,
            http_version=http_version,
            headers=headers,
            body=body,
            query_params=query_params,
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> "HTTPRequest":
        """Parse a complete raw request, enforcing Content-Length framing."""
        head, separator, body = raw.partition(HEADER_TERMINATOR)
        if not separator:
            raise HTTPRequestParseError("Missing CRLF CRLF request separator")

        try:
            expected_body_length = extract_content_length(head)
        except MalformedRequestError as exc:
            raise HTTPRequestParseError(str(exc)) from exc
        if len(body) < expected_body_length:
            raise HTTPRequestParseError("Body shorter than Content-Length")

        return cls.from_message(head, body[:expected_body_length])

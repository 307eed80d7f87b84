"""Blocking socket client for the JSON user API, plus a scripted demo."""

from __future__ import annotations

import argparse
import json
import logging
import socket
from typing import Any

from config import API_PORT, HOST
from socket_handler import HTTPReadError, read_http_message
from user_store import User

logger = logging.getLogger(__name__)


class APIClientError(Exception):
    """Raised when a request fails or the server reports ``success: false``."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def parse_http_response(head: bytes, body: bytes) -> tuple[int, dict[str, str], bytes]:
    """Split a framed response into ``(status, headers, body)``."""
    lines = head.decode("iso-8859-1").split("\r\n")
    status_parts = lines[0].split(" ", 2)
    if len(status_parts) < 2 or not status_parts[0].startswith("HTTP/"):
        raise APIClientError(f"Invalid status line {lines[0]!r}")
    try:
        status_code = int(status_parts[1])
    except ValueError as exc:
        raise APIClientError(f"Invalid status code {status_parts[1]!r}") from exc

    headers: dict[str, str] = {}
    for line in lines[1:]:
        if not line or ":" not in line:
            continue
        name, value = line.split(":", 1)
        headers[name.strip().lower()] = value.strip()
    return status_code, headers, body


class UserAPIClient:
    def __init__(self, host: str = HOST, port: int = API_PORT, *, timeout: float = 5.0) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout

    def get_all_users(self) -> list[User]:
        data = self._call("GET", "/api/users")
        return [_user_from_payload(item) for item in data or []]

    def get_user_by_id(self, user_id: int) -> User:
        data = self._call("GET", f"/api/users/{user_id}")
        if data is None:
            raise APIClientError("No data returned")
        return _user_from_payload(data)

    def create_user(self, name: str, email: str) -> User:
        payload = {"id": 0, "name": name, "email": email}
        data = self._call("POST", "/api/users", payload)
        if data is None:
            raise APIClientError("No data returned")
        return _user_from_payload(data)

    def _call(self, method: str, path: str, payload: Any = None) -> Any:
        status_code, _headers, body = self.request(method, path, payload)
        try:
            envelope = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise APIClientError(
                f"JSON parse error: {exc}. Response was: {body!r}",
                status_code=status_code,
            ) from exc

        if not isinstance(envelope, dict) or not envelope.get("success"):
            message = envelope.get("message") if isinstance(envelope, dict) else None
            raise APIClientError(message or "Request failed", status_code=status_code)
        return envelope.get("data")

    def request(
        self,
        method: str,
        path: str,
        payload: Any = None,
    ) -> tuple[int, dict[str, str], bytes]:
        """Send one request on a fresh connection and read the framed response."""
        authority = f"{self.host}:{self.port}"
        head_lines = [f"{method} {path} HTTP/1.1", f"Host: {authority}"]
        body = b""
        if payload is not None:
            body = json.dumps(payload, separators=(",", ":")).encode("utf-8")
            head_lines.append("Content-Type: application/json")
            head_lines.append(f"Content-Length: {len(body)}")
        raw = ("\r\n".join(head_lines) + "\r\n\r\n").encode("iso-8859-1") + body

        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout) as sock:
                sock.sendall(raw)
                head, response_body = read_http_message(sock)
        except HTTPReadError as exc:
            raise APIClientError(f"Invalid HTTP response: {exc}") from exc
        except OSError as exc:
            raise APIClientError(f"Connection failed: {exc}") from exc
        return parse_http_response(head, response_body)


def _user_from_payload(payload: Any) -> User:
    try:
        return User(id=int(payload["id"]), name=str(payload["name"]), email=str(payload["email"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise APIClientError(f"Malformed user payload: {payload!r}") from exc


def run_demo(client: UserAPIClient) -> None:
    """List users, fetch one, create one, list again."""
    steps = (
        ("Getting all users", client.get_all_users),
        ("Getting user by ID (1)", lambda: client.get_user_by_id(1)),
        ("Creating new user", lambda: client.create_user("Charlie", "charlie@example.com")),
        ("Getting all users after creation", client.get_all_users),
    )
    for index, (title, step) in enumerate(steps, start=1):
        logger.info("%s. %s:", index, title)
        try:
            result = step()
        except APIClientError as exc:
            logger.error("   Error: %s", exc)
            continue
        users = result if isinstance(result, list) else [result]
        for user in users:
            logger.info("   - User #%s: %s (%s)", user.id, user.name, user.email)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Exercise a running user API server")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=API_PORT)
    parser.add_argument("--timeout", type=float, default=5.0)
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = _parse_args()
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    run_demo(UserAPIClient(args.host, args.port, timeout=args.timeout))

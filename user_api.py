"""HTTP handlers for the JSON user API."""

from __future__ import annotations

import json
from typing import Any

from request import HTTPRequest
from response import HTTPResponse
from router import Router
from user_store import UserStore

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


class UserAPI:
    def __init__(self, *, store: UserStore) -> None:
        self._store = store

    def list_users(self, request: HTTPRequest) -> HTTPResponse:
        _ = request
        users = [user.to_dict() for user in self._store.list_all()]
        return self._envelope(200, True, users, "Users retrieved successfully")

    def get_user(self, request: HTTPRequest) -> HTTPResponse:
        raw_id = request.path_params.get("id")
        if raw_id is None:
            return self._envelope(400, False, None, "Invalid user ID")

        user_id = int(raw_id)
        user = self._store.get_by_id(user_id)
        if user is None:
            return self._envelope(404, False, None, f"User with id {user_id} not found")
        return self._envelope(200, True, user.to_dict(), "User found")

    def create_user(self, request: HTTPRequest) -> HTTPResponse:
        payload = self._read_user_payload(request)
        if payload is None:
            return self._envelope(400, False, None, "Invalid JSON data")

        user = self._store.create(payload["name"], payload["email"])
        return self._envelope(201, True, user.to_dict(), "User created successfully")

    def endpoint_not_found(self, request: HTTPRequest) -> HTTPResponse:
        _ = request
        return self._envelope(404, False, None, "Endpoint not found")

    def _read_user_payload(self, request: HTTPRequest) -> dict[str, str] | None:
        try:
            payload = json.loads(request.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None

        if not isinstance(payload, dict):
            return None
        name = payload.get("name")
        email = payload.get("email")
        if not isinstance(name, str) or not isinstance(email, str):
            return None
        return {"name": name, "email": email}

    def _envelope(self, status: int, success: bool, data: Any, message: str) -> HTTPResponse:
        return HTTPResponse.json(
            {"success": success, "data": data, "message": message},
            status_code=status,
            headers=CORS_HEADERS,
        )


def build_api_router(api: UserAPI) -> Router:
    router = Router(fallback=api.endpoint_not_found)
    router.add_route("GET", "/api/users", api.list_users)
    router.add_route("GET", "/api/users/:id", api.get_user)
    router.add_route("POST", "/api/users", api.create_user)
    return router

"""Thread-safe in-memory user store."""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Any

SEED_USERS = (
    ("Alice", "alice@example.com"),
    ("Bob", "bob@example.com"),
)


@dataclass(frozen=True, slots=True)
class User:
    id: int
    name: str
    email: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class UserStore:
    def __init__(self, seed: tuple[tuple[str, str], ...] = SEED_USERS) -> None:
        self._lock = threading.Lock()
        self._users: list[User] = []
        self._next_id = 1
        for name, email in seed:
            self.create(name, email)

    def list_all(self) -> list[User]:
        with self._lock:
            return list(self._users)

    def get_by_id(self, user_id: int) -> User | None:
        with self._lock:
            for user in self._users:
                if user.id == user_id:
                    return user
        return None

    def create(self, name: str, email: str) -> User:
        with self._lock:
            user = User(id=self._next_id, name=name, email=email)
            self._next_id += 1
            self._users.append(user)
            return user

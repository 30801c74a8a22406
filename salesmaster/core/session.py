"""Client-side login state.

``AuthSession`` is a plain value; loading, saving and clearing it always go
through an explicit ``TokenStorage`` so nothing about the signed-in user
lives in module globals.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

SESSION_KEY = "userToken"


class TokenStorage:
    def get(self, key: str) -> str | None:  # pragma: no cover - interface
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def remove(self, key: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryTokenStorage(TokenStorage):
    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class FileTokenStorage(TokenStorage):
    """Key/value pairs kept in a single JSON file (one per device/user profile)."""

    def __init__(self, path: Path):
        self.path = path.expanduser()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        return json.loads(self.path.read_text(encoding="utf-8"))

    def _write(self, values: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(values, sort_keys=True), encoding="utf-8")
        self.path.chmod(0o600)

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._read()
        values[key] = value
        self._write(values)

    def remove(self, key: str) -> None:
        values = self._read()
        if values.pop(key, None) is not None:
            self._write(values)


@dataclass(frozen=True)
class AuthSession:
    token: str | None = None
    username: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @classmethod
    def load(cls, storage: TokenStorage) -> AuthSession:
        raw = storage.get(SESSION_KEY)
        if not raw:
            return cls()
        data = json.loads(raw)
        return cls(token=data.get("token"), username=data.get("username"))

    def save(self, storage: TokenStorage) -> AuthSession:
        if not self.is_authenticated:
            raise ValueError("cannot save an anonymous session")
        storage.set(SESSION_KEY, json.dumps({"token": self.token, "username": self.username}, sort_keys=True))
        logger.info("session saved for user=%s", self.username)
        return self

    @classmethod
    def clear(cls, storage: TokenStorage) -> AuthSession:
        storage.remove(SESSION_KEY)
        logger.info("session cleared")
        return cls()

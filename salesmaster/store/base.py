from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Generator, Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import salesmaster.persistence.db as db
from salesmaster.core.errors import StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")
SnapshotCallback = Callable[[tuple[T, ...]], None]


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Subscription:
    """Handle returned by ``subscribe``; call it (or ``unsubscribe``) to stop delivery."""

    def __init__(self, cancel: Callable[[], None]):
        self._cancel = cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if self._active:
            self._active = False
            self._cancel()

    __call__ = unsubscribe


class SnapshotPublisher(Generic[T]):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: dict[int, SnapshotCallback] = {}
        self._next_token = 0

    def add(self, callback: SnapshotCallback) -> Subscription:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._listeners[token] = callback

        def cancel() -> None:
            with self._lock:
                self._listeners.pop(token, None)

        return Subscription(cancel)

    def has_listeners(self) -> bool:
        with self._lock:
            return bool(self._listeners)

    def publish(self, snapshot: tuple[T, ...]) -> None:
        with self._lock:
            listeners = list(self._listeners.values())
        for callback in listeners:
            try:
                callback(snapshot)
            except Exception:
                # Mutations are committed before publish runs.
                logger.exception("snapshot subscriber %r failed", callback)


class SqlStore(Generic[T]):
    """Shared plumbing for the SQLAlchemy-backed collections."""

    collection = "records"

    def __init__(self) -> None:
        self._publisher: SnapshotPublisher[T] = SnapshotPublisher()

    @contextmanager
    def _scope(self) -> Generator[Session, None, None]:
        try:
            # Looked up on every call so tests can swap the session factory.
            with db.session_scope() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("%s store operation failed: %s", self.collection, exc)
            raise StoreError(f"{self.collection} store unavailable: {exc}") from exc

    def get_all(self) -> tuple[T, ...]:  # pragma: no cover - interface
        raise NotImplementedError

    def subscribe(self, callback: SnapshotCallback) -> Subscription:
        return self._publisher.add(callback)

    def _notify(self) -> None:
        if self._publisher.has_listeners():
            self._publisher.publish(self.get_all())

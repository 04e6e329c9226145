"""Persistence collaborators for the game state store.

The store never talks to a database directly: it is handed something that can
``load`` and ``save`` a :class:`~sandbox.schemas.SessionSnapshot`, and a
scheduler used to delay writes until activity settles.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol

from sandbox.schemas import SessionSnapshot

logger = logging.getLogger(__name__)

AUTO_SAVE_DEBOUNCE_MS = 500


class PersistenceError(RuntimeError):
    """Raised by session stores when a snapshot cannot be read or written."""


class SessionStore(Protocol):
    def load(self, session_id: str) -> SessionSnapshot | None: ...

    def save(self, session_id: str, snapshot: SessionSnapshot) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class ThreadingScheduler:
    """Runs callbacks on daemon timer threads."""

    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay_ms / 1000.0, fn)
        timer.daemon = True
        timer.start()
        return timer

    def cancel(self, handle: threading.Timer) -> None:
        handle.cancel()


class Debouncer:
    """
    Trailing-edge debounce over a scheduler.

    Each ``trigger`` cancels the pending call and schedules a new one, so a
    burst of triggers results in a single call once the burst has been quiet
    for ``delay_ms``.
    """

    def __init__(self, scheduler: Scheduler, delay_ms: int, callback: Callable[[], None]):
        self._scheduler = scheduler
        self._delay_ms = delay_ms
        self._callback = callback
        self._handle: Any = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._scheduler.cancel(self._handle)
            self._handle = self._scheduler.call_later(self._delay_ms, self._fire)

    def cancel(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._scheduler.cancel(self._handle)
                self._handle = None

    def flush(self) -> None:
        self.cancel()
        self._callback()

    def _fire(self) -> None:
        with self._lock:
            self._handle = None
        logger.debug("Debounce window elapsed; running callback")
        self._callback()


class MemorySessionStore:
    """In-process session store; used when no database is configured."""

    def __init__(self):
        self._snapshots: dict[str, str] = {}

    def load(self, session_id: str) -> SessionSnapshot | None:
        raw = self._snapshots.get(session_id)
        if raw is None:
            return None
        return SessionSnapshot.model_validate_json(raw)

    def save(self, session_id: str, snapshot: SessionSnapshot) -> None:
        self._snapshots[session_id] = snapshot.model_dump_json(by_alias=True)

    def delete(self, session_id: str) -> bool:
        return self._snapshots.pop(session_id, None) is not None

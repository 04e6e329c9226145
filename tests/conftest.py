import pytest

from sandbox.engine.game_state import GameStateStore
from sandbox.engine.persistence import PersistenceError


class ManualScheduler:
    """Scheduler whose timers only fire when the test says so."""

    def __init__(self):
        self.pending: dict[int, tuple[int, object]] = {}
        self.cancelled: list[int] = []
        self._next = 0

    def call_later(self, delay_ms, fn):
        handle = self._next
        self._next += 1
        self.pending[handle] = (delay_ms, fn)
        return handle

    def cancel(self, handle):
        self.pending.pop(handle, None)
        self.cancelled.append(handle)

    def run_all(self):
        jobs = list(self.pending.values())
        self.pending.clear()
        for _, fn in jobs:
            fn()


class FakeRepository:
    def __init__(self):
        self.snapshots = {}
        self.saves = []
        self.fail_load = False
        self.fail_save = False

    def load(self, session_id):
        if self.fail_load:
            raise PersistenceError("database unavailable")
        return self.snapshots.get(session_id)

    def save(self, session_id, snapshot):
        if self.fail_save:
            raise PersistenceError("write failed")
        self.saves.append((session_id, snapshot))
        self.snapshots[session_id] = snapshot


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def store(repository, scheduler):
    s = GameStateStore("session-1", repository, scheduler=scheduler)
    s.load()
    return s


@pytest.fixture
def json_deck():
    return {
        "name": "Imported",
        "cards": [
            {"id": "a", "name": "Alpha", "imageUrl": "https://example.com/a.jpg"},
            {"id": "b", "name": "Beta", "metadata": {"cost": 2}},
            {"id": "c", "name": "Gamma"},
        ],
    }

# tests/conftest.py

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskflow.core.state import AppState
from taskflow.storage.kv_store import SqliteKVStore
from taskflow.tasks.task_store import TaskStore

from .fakes import FakeClock, InMemoryKVStore, RecordingNotifier, SequentialIds

TODAY = date(2026, 10, 17)


def local_ms(days: int = 0, hour: int = 12, minute: int = 0) -> int:
    """Epoch ms for a local wall-clock time `days` away from TODAY."""
    d = TODAY + timedelta(days=days)
    return int(datetime.combine(d, time(hour, minute)).timestamp() * 1000)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(local_ms(0, 12))


@pytest.fixture()
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture()
def kv() -> InMemoryKVStore:
    return InMemoryKVStore()


@pytest.fixture()
def store(kv: InMemoryKVStore, clock: FakeClock, ids: SequentialIds) -> TaskStore:
    return TaskStore(kv, clock=clock, id_factory=ids)


@pytest.fixture()
def sqlite_store(tmp_path: Path, clock: FakeClock, ids: SequentialIds) -> TaskStore:
    """
    TaskStore on the real SQLite backend: the atomic multi-key write is part of
    what we want to test.
    """
    return TaskStore(SqliteKVStore(tmp_path / "taskflow.sqlite3"), clock=clock, id_factory=ids)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the console commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskflow-test",
        data_dir=tmp_path,
        db_path=tmp_path / "taskflow.sqlite3",
        reminder_interval_seconds=0.01,
        snooze_minutes=15,
        reminders_enabled=False,
        console_enabled=False,
    )


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore, notifier: RecordingNotifier) -> AppState:
    return AppState(settings=settings, store=store, notifier=notifier)

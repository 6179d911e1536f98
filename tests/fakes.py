# tests/fakes.py

from __future__ import annotations

import copy
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from taskflow.core.ports import NotificationSink
from taskflow.tasks.task_models import MINUTE_MS, Reminder, Task


class InMemoryKVStore:
    """
    In-memory KeyValueStore used for unit tests.

    Values are deep-copied on the way in and out so tests see the same
    isolation as the JSON-backed SQLite store.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = copy.deepcopy(dict(initial or {}))
        self.writes = 0
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return copy.deepcopy(self.data.get(key, default))

    def update(self, key: str, updater: Callable[[Any], Any], default: Any = None) -> Any:
        return self.update_many({key: default}, lambda values: {key: updater(values[key])})[key]

    def update_many(
        self,
        defaults: Mapping[str, Any],
        updater: Callable[[dict[str, Any]], Mapping[str, Any] | None],
    ) -> dict[str, Any]:
        with self._lock:
            current = {k: copy.deepcopy(self.data.get(k, d)) for k, d in defaults.items()}
            changes = updater(dict(current)) or {}
            for k, v in changes.items():
                self.data[k] = copy.deepcopy(v)
                self.writes += 1
            current.update(changes)
            return current


class FakeClock:
    def __init__(self, now_ms: int) -> None:
        self.now = int(now_ms)

    def now_ms(self) -> int:
        return self.now

    def advance(self, *, minutes: int = 0, ms: int = 0) -> None:
        self.now += minutes * MINUTE_MS + ms


class SequentialIds:
    def __init__(self, prefix: str = "id") -> None:
        self.prefix = prefix
        self.n = 0

    def __call__(self) -> str:
        self.n += 1
        return f"{self.prefix}-{self.n}"


@dataclass(slots=True)
class RecordingNotifier(NotificationSink):
    """
    Fake NotificationSink used by scheduler tests.
    """

    fired: list[tuple[Task, Reminder]] = field(default_factory=list)
    last_reminder_id: str | None = None

    def notify(self, task: Task, reminder: Reminder) -> None:
        self.fired.append((task, reminder))
        self.last_reminder_id = reminder.id


class ExplodingNotifier:
    def __init__(self) -> None:
        self.calls = 0

    def notify(self, task: Task, reminder: Reminder) -> None:
        self.calls += 1
        raise RuntimeError("display backend is down")

# src/taskflow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the task engine.

The engine depends on Protocols instead of concrete implementations.
This keeps storage/clock/notification delivery swappable and makes testing easier.
"""

import time
import uuid
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from ..tasks.task_models import Reminder, Task

# Logical keys held by the durable store.
TASKS_KEY = "tasks"
CATEGORIES_KEY = "categories"
REMINDERS_KEY = "reminders"


class KeyValueStore(Protocol):
    """
    Durable key-value medium.

    Values are JSON-compatible (lists of plain dict records).
    Updater-based writes must apply atomically against the latest value:
    two rapid sequential updates never lose each other's changes.
    """

    def get(self, key: str, default: Any = None) -> Any: ...

    def update(self, key: str, updater: Callable[[Any], Any], default: Any = None) -> Any: ...

    def update_many(
            self,
            defaults: Mapping[str, Any],
            updater: Callable[[dict[str, Any]], Mapping[str, Any] | None],
    ) -> dict[str, Any]:
        """
        Read every key in `defaults`, pass them to `updater`, write back what it returns.

        The updater returns only the keys to write (or None to write nothing).
        Returns the committed values of all requested keys.
        """
        ...


class Clock(Protocol):
    """Sole source of "current time" (epoch milliseconds)."""
    def now_ms(self) -> int: ...


class NotificationSink(Protocol):
    """
    Presentation-side port: how the reminder scheduler surfaces a due reminder.

    Fire-and-forget; the return value is ignored.
    """

    def notify(self, task: Task, reminder: Reminder) -> None: ...


IdGenerator = Callable[[], str]


class SystemClock:
    def now_ms(self) -> int:
        return int(time.time() * 1000)


def new_id() -> str:
    return uuid.uuid4().hex

# src/taskflow/connectors/console_notifier.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..core.ports import Clock, SystemClock
from ..tasks.reminders import describe_reminder
from ..tasks.task_models import Reminder, Task

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleNotifier:
    """
    NotificationSink that prints reminders into the console.

    Remembers the last fired reminder so "/snooze" without arguments can act on it.
    """

    def __init__(self, *, clock: Clock | None = None, emit: Callable[[str], None] | None = None) -> None:
        self._clock: Clock = clock or SystemClock()
        self._emit = emit or (lambda text: print(text, flush=True))
        self.last_reminder_id: str | None = None

    def notify(self, task: Task, reminder: Reminder) -> None:
        self.last_reminder_id = reminder.id
        text = describe_reminder(task, reminder, self._clock.now_ms())
        self._emit(f"\n[{_ts_local()}] [REMINDER] {text} (use /snooze to be reminded later)")

# tests/test_console_notifier.py

from __future__ import annotations

from taskflow.connectors.console_notifier import ConsoleNotifier
from taskflow.tasks.task_models import Reminder, ReminderType, Task

from .conftest import local_ms


def test_notify_prints_reminder_and_remembers_id(clock) -> None:
    lines: list[str] = []
    notifier = ConsoleNotifier(clock=clock, emit=lines.append)

    task = Task(
        id="t1",
        title="Dentist",
        created_at=0,
        order=0,
        due_date=local_ms(1, 9),
        reminder_type=ReminderType.DAY_1,
    )
    reminder = Reminder(id="r1", task_id="t1", reminder_time=local_ms(0, 9), type=ReminderType.DAY_1)

    notifier.notify(task, reminder)

    assert notifier.last_reminder_id == "r1"
    assert len(lines) == 1
    assert "[REMINDER] Reminder: Dentist (due Tomorrow, 1 day before)" in lines[0]
    assert "/snooze" in lines[0]

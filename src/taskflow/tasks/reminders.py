# src/taskflow/tasks/reminders.py

from __future__ import annotations

"""
Reminder rules.

Pure functions over immutable reminder tuples:
- derive (create/replace/remove) the reminder of a task,
- scan for reminders that became due,
- snooze a triggered reminder,
- reconcile reminders against the task collection.

Each function returns a new tuple (or None when nothing changed) so the caller
can skip redundant writes. Delivery of the notification belongs to the caller.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace

from .due_dates import format_due_date
from .task_models import MINUTE_MS, Reminder, ReminderType, Task

DEFAULT_SNOOZE_MINUTES = 15


@dataclass(slots=True, frozen=True)
class ScanResult:
    """
    Outcome of one scan.

    reminders: the updated collection, or None when no reminder changed.
    fired: (task, reminder) pairs to notify, reminder already marked triggered.
    """

    reminders: tuple[Reminder, ...] | None
    fired: list[tuple[Task, Reminder]] = field(default_factory=list)


def reminder_time_for(due_date: int, reminder_type: ReminderType) -> int | None:
    offset = reminder_type.offset_ms
    if offset is None:
        return None
    return due_date - offset


def derive_reminder(
    reminders: Sequence[Reminder],
    task: Task,
    reminder_type: ReminderType,
    *,
    new_id: str,
) -> tuple[Reminder, ...]:
    """
    Replace (never append) the reminder owned by `task`.

    No due date or ReminderType.NONE -> the task ends up with no reminder.
    """
    others = tuple(r for r in reminders if r.task_id != task.id)

    if task.due_date is None or reminder_type is ReminderType.NONE:
        return others

    rtime = reminder_time_for(task.due_date, reminder_type)
    if rtime is None:
        return others

    return others + (
        Reminder(
            id=new_id,
            task_id=task.id,
            reminder_time=rtime,
            type=reminder_type,
            triggered=False,
            snoozed_until=None,
        ),
    )


def remove_reminder_for(reminders: Sequence[Reminder], task_id: str) -> tuple[Reminder, ...]:
    return tuple(r for r in reminders if r.task_id != task_id)


def is_eligible(reminder: Reminder, now_ms: int) -> bool:
    if reminder.triggered:
        return False
    if reminder.snoozed_until is not None and reminder.snoozed_until > now_ms:
        return False
    return reminder.reminder_time <= now_ms


def scan_due(now_ms: int, tasks: Iterable[Task], reminders: Sequence[Reminder]) -> ScanResult:
    """
    Find reminders that should fire at `now_ms` and mark them triggered.

    Reminders whose task is gone or completed are left untouched here;
    reconcile() removes them.
    """
    by_id = {t.id: t for t in tasks}
    changed = False
    fired: list[tuple[Task, Reminder]] = []
    out: list[Reminder] = []

    for rem in reminders:
        if is_eligible(rem, now_ms):
            task = by_id.get(rem.task_id)
            if task is not None and not task.completed:
                rem = replace(rem, triggered=True)
                fired.append((task, rem))
                changed = True
        out.append(rem)

    return ScanResult(reminders=tuple(out) if changed else None, fired=fired)


def snooze(
    reminders: Sequence[Reminder],
    reminder_id: str,
    now_ms: int,
    delay_minutes: int = DEFAULT_SNOOZE_MINUTES,
) -> tuple[Reminder, ...] | None:
    """Re-arm a reminder `delay_minutes` from now. None when the id is unknown."""
    found = False
    out: list[Reminder] = []
    for rem in reminders:
        if rem.id == reminder_id:
            rem = replace(
                rem,
                snoozed_until=now_ms + max(0, int(delay_minutes)) * MINUTE_MS,
                triggered=False,
            )
            found = True
        out.append(rem)
    return tuple(out) if found else None


def reconcile(tasks: Iterable[Task], reminders: Sequence[Reminder]) -> tuple[Reminder, ...] | None:
    """Drop reminders whose task no longer exists or is completed."""
    live = {t.id for t in tasks if not t.completed}
    kept = tuple(r for r in reminders if r.task_id in live)
    return kept if len(kept) != len(reminders) else None


def describe_reminder(task: Task, reminder: Reminder, now_ms: int) -> str:
    if task.due_date is None:
        return f"Reminder: {task.title}"
    return f"Reminder: {task.title} (due {format_due_date(task.due_date, now_ms)}, {reminder.type.label})"

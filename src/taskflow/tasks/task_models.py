# src/taskflow/tasks/task_models.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

MINUTE_MS = 60_000


def _opt_int(raw: Mapping[str, Any], key: str, default: int | None) -> int | None:
    """Read an optional integer field; unparseable values fall back to `default`."""
    value = raw.get(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Record id=%s: invalid %s=%r, using default", raw.get("id"), key, value)
        return default


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return _PRIORITY_WEIGHTS[self]

    @classmethod
    def parse(cls, raw: Any) -> Priority:
        """Absent or unknown values fall back to MEDIUM (legacy records have no priority)."""
        if isinstance(raw, Priority):
            return raw
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.MEDIUM


_PRIORITY_WEIGHTS = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class ReminderType(StrEnum):
    """
    Lead time before the due date at which a reminder fires.

    Notes:
    - NONE means "no reminder" and is the only valid value for tasks without a due date.
    """

    NONE = "none"
    MIN_15 = "15min"
    MIN_30 = "30min"
    HOUR_1 = "1hour"
    HOURS_2 = "2hours"
    DAY_1 = "1day"
    DAYS_3 = "3days"
    WEEK_1 = "1week"

    @property
    def offset_minutes(self) -> int | None:
        return _REMINDER_OFFSETS_MINUTES.get(self)

    @property
    def offset_ms(self) -> int | None:
        minutes = self.offset_minutes
        return None if minutes is None else minutes * MINUTE_MS

    @property
    def label(self) -> str:
        return _REMINDER_LABELS[self]

    @classmethod
    def parse(cls, raw: Any) -> ReminderType:
        if isinstance(raw, ReminderType):
            return raw
        if not raw:
            return cls.NONE
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.NONE


_REMINDER_OFFSETS_MINUTES = {
    ReminderType.MIN_15: 15,
    ReminderType.MIN_30: 30,
    ReminderType.HOUR_1: 60,
    ReminderType.HOURS_2: 120,
    ReminderType.DAY_1: 1440,
    ReminderType.DAYS_3: 4320,
    ReminderType.WEEK_1: 10080,
}

_REMINDER_LABELS = {
    ReminderType.NONE: "No reminder",
    ReminderType.MIN_15: "15 minutes before",
    ReminderType.MIN_30: "30 minutes before",
    ReminderType.HOUR_1: "1 hour before",
    ReminderType.HOURS_2: "2 hours before",
    ReminderType.DAY_1: "1 day before",
    ReminderType.DAYS_3: "3 days before",
    ReminderType.WEEK_1: "1 week before",
}


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    created_at: int
    order: int

    completed: bool = False
    category: str = ""  # category id, "" means uncategorized
    priority: Priority = Priority.MEDIUM
    due_date: int | None = None
    notes: str | None = None
    reminder_type: ReminderType = ReminderType.NONE

    @property
    def has_reminder(self) -> bool:
        return self.due_date is not None and self.reminder_type is not ReminderType.NONE

    def to_record(self) -> dict[str, Any]:
        rec: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "category": self.category,
            "createdAt": self.created_at,
            "order": self.order,
            "priority": self.priority.value,
            "reminderType": self.reminder_type.value,
        }
        if self.due_date is not None:
            rec["dueDate"] = self.due_date
        if self.notes is not None:
            rec["notes"] = self.notes
        return rec

    @classmethod
    def from_record(cls, raw: Mapping[str, Any], *, default_order: int = 0) -> Task:
        task_id = raw.get("id")
        title = str(raw.get("title") or "").strip()
        if not task_id or not title:
            raise ValueError("task record requires id and title")

        due_date = _opt_int(raw, "dueDate", None)
        notes = raw.get("notes")

        return cls(
            id=str(task_id),
            title=title,
            created_at=_opt_int(raw, "createdAt", 0) or 0,
            order=_opt_int(raw, "order", default_order),
            completed=bool(raw.get("completed", False)),
            category=str(raw.get("category") or ""),
            priority=Priority.parse(raw.get("priority")),
            due_date=due_date,
            notes=str(notes) if notes is not None else None,
            reminder_type=(
                ReminderType.parse(raw.get("reminderType")) if due_date is not None else ReminderType.NONE
            ),
        )


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str
    color: str | None = None

    def to_record(self) -> dict[str, Any]:
        rec: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.color is not None:
            rec["color"] = self.color
        return rec

    @classmethod
    def from_record(cls, raw: Mapping[str, Any]) -> Category:
        cat_id = raw.get("id")
        name = str(raw.get("name") or "").strip()
        if not cat_id or not name:
            raise ValueError("category record requires id and name")
        color = raw.get("color")
        return cls(id=str(cat_id), name=name, color=str(color) if color is not None else None)


@dataclass(frozen=True, slots=True)
class Reminder:
    id: str
    task_id: str
    reminder_time: int
    type: ReminderType
    triggered: bool = False
    snoozed_until: int | None = None

    def to_record(self) -> dict[str, Any]:
        rec: dict[str, Any] = {
            "id": self.id,
            "taskId": self.task_id,
            "reminderTime": self.reminder_time,
            "type": self.type.value,
            "triggered": self.triggered,
        }
        if self.snoozed_until is not None:
            rec["snoozedUntil"] = self.snoozed_until
        return rec

    @classmethod
    def from_record(cls, raw: Mapping[str, Any]) -> Reminder:
        rem_id = raw.get("id")
        task_id = raw.get("taskId")
        rtime = raw.get("reminderTime")
        if not rem_id or not task_id or rtime is None:
            raise ValueError("reminder record requires id, taskId and reminderTime")
        return cls(
            id=str(rem_id),
            task_id=str(task_id),
            reminder_time=int(rtime),
            type=ReminderType.parse(raw.get("type")),
            triggered=bool(raw.get("triggered", False)),
            snoozed_until=_opt_int(raw, "snoozedUntil", None),
        )


# ---- hydration (runs once per load of persisted records) ----


def hydrate_tasks(records: Iterable[Any] | None) -> tuple[Task, ...]:
    """
    Normalize persisted task records.

    Legacy records may miss order/priority/reminderType; defaults are filled here
    (order = positional index, priority = medium) so derived computations never
    need ad hoc checks.
    """
    out: list[Task] = []
    for idx, raw in enumerate(records or ()):
        if isinstance(raw, Task):
            out.append(raw)
            continue
        if not isinstance(raw, Mapping):
            logger.warning("Dropping non-mapping task record at index %s", idx)
            continue
        try:
            out.append(Task.from_record(raw, default_order=idx))
        except (TypeError, ValueError):
            logger.warning("Dropping malformed task record at index %s: %r", idx, raw)
    return tuple(out)


def hydrate_categories(records: Iterable[Any] | None) -> tuple[Category, ...]:
    out: list[Category] = []
    for idx, raw in enumerate(records or ()):
        if isinstance(raw, Category):
            out.append(raw)
            continue
        if not isinstance(raw, Mapping):
            logger.warning("Dropping non-mapping category record at index %s", idx)
            continue
        try:
            out.append(Category.from_record(raw))
        except (TypeError, ValueError):
            logger.warning("Dropping malformed category record at index %s: %r", idx, raw)
    return tuple(out)


def hydrate_reminders(records: Iterable[Any] | None) -> tuple[Reminder, ...]:
    out: list[Reminder] = []
    for idx, raw in enumerate(records or ()):
        if isinstance(raw, Reminder):
            out.append(raw)
            continue
        if not isinstance(raw, Mapping):
            logger.warning("Dropping non-mapping reminder record at index %s", idx)
            continue
        try:
            out.append(Reminder.from_record(raw))
        except (TypeError, ValueError):
            logger.warning("Dropping malformed reminder record at index %s: %r", idx, raw)
    return tuple(out)

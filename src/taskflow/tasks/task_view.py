# src/taskflow/tasks/task_view.py

from __future__ import annotations

"""
Derived task view.

derive_view() is a pure function of (tasks, active filter, current day):
it filters, sorts and counts in one place so every consumer (console, reorder
engine, tests) sees exactly the same ordering.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from .due_dates import is_due_today, is_overdue, local_day
from .task_models import Priority, Task


class TaskFilter(StrEnum):
    ALL = "all"
    COMPLETED = "completed"
    PENDING = "pending"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    OVERDUE = "overdue"
    TODAY = "today"
    NO_DUE_DATE = "no-due-date"


# Any other string is treated as a category id.
FilterSpec = TaskFilter | str


@dataclass(slots=True, frozen=True)
class TaskStats:
    total: int = 0
    completed: int = 0
    pending: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    overdue: int = 0
    due_today: int = 0
    no_due_date: int = 0
    with_reminders: int = 0


@dataclass(slots=True, frozen=True)
class TaskView:
    tasks: tuple[Task, ...]
    stats: TaskStats


def _predicate(active_filter: FilterSpec, now_ms: int) -> Callable[[Task], bool]:
    try:
        kind = TaskFilter(active_filter)
    except ValueError:
        category_id = str(active_filter)
        return lambda t: t.category == category_id

    if kind is TaskFilter.ALL:
        return lambda t: True
    if kind is TaskFilter.COMPLETED:
        return lambda t: t.completed
    if kind is TaskFilter.PENDING:
        return lambda t: not t.completed
    if kind in (TaskFilter.HIGH, TaskFilter.MEDIUM, TaskFilter.LOW):
        wanted = Priority(kind.value)
        return lambda t: Priority.parse(t.priority) is wanted
    if kind is TaskFilter.OVERDUE:
        return lambda t: not t.completed and is_overdue(t.due_date, now_ms)
    if kind is TaskFilter.TODAY:
        return lambda t: is_due_today(t.due_date, now_ms)
    # NO_DUE_DATE
    return lambda t: t.due_date is None


def filter_tasks(tasks: Sequence[Task], active_filter: FilterSpec, *, now_ms: int) -> list[Task]:
    pred = _predicate(active_filter, now_ms)
    return [t for t in tasks if pred(t)]


def sort_key(task: Task, now_ms: int) -> tuple:
    """
    Precedence (each tie falls through):
    incomplete first, overdue first, dated first (earlier due first),
    higher priority first, ascending manual order, then created_at/id.
    """
    overdue = not task.completed and is_overdue(task.due_date, now_ms)
    has_due = task.due_date is not None
    return (
        task.completed,
        not overdue,
        not has_due,
        task.due_date if has_due else 0,
        -Priority.parse(task.priority).weight,
        task.order,
        task.created_at,
        task.id,
    )


def sort_tasks(tasks: Sequence[Task], *, now_ms: int) -> list[Task]:
    return sorted(tasks, key=lambda t: sort_key(t, now_ms))


def compute_stats(tasks: Sequence[Task], *, now_ms: int) -> TaskStats:
    total = completed = high = medium = low = 0
    overdue = due_today = no_due = with_reminders = 0

    for t in tasks:
        total += 1
        if t.completed:
            completed += 1

        prio = Priority.parse(t.priority)
        if prio is Priority.HIGH:
            high += 1
        elif prio is Priority.LOW:
            low += 1
        else:
            medium += 1

        if t.due_date is None:
            no_due += 1
            continue

        if t.completed:
            continue
        if is_overdue(t.due_date, now_ms):
            overdue += 1
        elif is_due_today(t.due_date, now_ms):
            due_today += 1
        if t.has_reminder:
            with_reminders += 1

    return TaskStats(
        total=total,
        completed=completed,
        pending=total - completed,
        high=high,
        medium=medium,
        low=low,
        overdue=overdue,
        due_today=due_today,
        no_due_date=no_due,
        with_reminders=with_reminders,
    )


def visible_tasks(tasks: Sequence[Task], active_filter: FilterSpec, *, now_ms: int) -> list[Task]:
    """Filtered + sorted list, exactly as displayed for `active_filter`."""
    return sort_tasks(filter_tasks(tasks, active_filter, now_ms=now_ms), now_ms=now_ms)


def derive_view(tasks: Sequence[Task], active_filter: FilterSpec, *, now_ms: int) -> TaskView:
    return TaskView(
        tasks=tuple(visible_tasks(tasks, active_filter, now_ms=now_ms)),
        stats=compute_stats(tasks, now_ms=now_ms),
    )


class ViewCache:
    """
    Memoizes the last derived view.

    The key is (tasks, filter, local day): the same tasks viewed on a new day
    can reclassify as overdue/today, so the day is part of the key.
    """

    def __init__(self) -> None:
        self._key: tuple[tuple[Task, ...], str, date] | None = None
        self._view: TaskView | None = None
        self.hits = 0

    def get(self, tasks: Sequence[Task], active_filter: FilterSpec, *, now_ms: int) -> TaskView:
        key = (tuple(tasks), str(active_filter), local_day(now_ms))
        if self._view is not None and self._key == key:
            self.hits += 1
            return self._view
        self._view = derive_view(key[0], active_filter, now_ms=now_ms)
        self._key = key
        return self._view

    def clear(self) -> None:
        self._key = None
        self._view = None

# src/taskflow/tasks/due_dates.py

"""
Calendar-day helpers for due dates.

All comparisons are done on local calendar days: both timestamps are truncated
to local midnight first, so a task due at 08:00 today is "due today" at 23:00,
not overdue.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta


def local_day(ts_ms: int) -> date:
    return datetime.fromtimestamp(ts_ms / 1000).date()


def is_overdue(due_ms: int | None, now_ms: int) -> bool:
    if due_ms is None:
        return False
    return local_day(due_ms) < local_day(now_ms)


def is_due_today(due_ms: int | None, now_ms: int) -> bool:
    if due_ms is None:
        return False
    return local_day(due_ms) == local_day(now_ms)


def days_until_due(due_ms: int, now_ms: int) -> int:
    """Whole calendar days from today to the due day (negative when overdue)."""
    return (local_day(due_ms) - local_day(now_ms)).days


def format_due_date(due_ms: int, now_ms: int) -> str:
    due = local_day(due_ms)
    today = local_day(now_ms)
    if due == today:
        return "Today"
    if due == today + timedelta(days=1):
        return "Tomorrow"
    return due.isoformat()


def parse_due_date(raw: str) -> int:
    """
    Parse "YYYY-MM-DD" or "YYYY-MM-DDTHH:MM" (local time) into epoch ms.

    A bare date maps to local midnight of that day.
    """
    text = (raw or "").strip()
    if not text:
        raise ValueError("empty due date")
    return int(datetime.fromisoformat(text).timestamp() * 1000)

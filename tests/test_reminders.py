# tests/test_reminders.py

from __future__ import annotations

from dataclasses import replace

from taskflow.tasks.reminders import (
    derive_reminder,
    describe_reminder,
    reconcile,
    scan_due,
    snooze,
)
from taskflow.tasks.task_models import Reminder, ReminderType, Task

from .conftest import local_ms

NOW = local_ms(0, 12)


def _task(tid: str = "t1", **kw) -> Task:
    base = {"title": f"task {tid}", "created_at": 0, "order": 0}
    base.update(kw)
    return Task(id=tid, **base)


def _rem(rid: str, task_id: str, at: int, **kw) -> Reminder:
    return Reminder(id=rid, task_id=task_id, reminder_time=at, type=ReminderType.MIN_15, **kw)


def test_derive_one_day_before_due() -> None:
    due = local_ms(1, 9)
    task = _task(due_date=due, reminder_type=ReminderType.DAY_1)

    out = derive_reminder((), task, ReminderType.DAY_1, new_id="r1")
    assert len(out) == 1
    assert out[0].reminder_time == due - 1440 * 60_000
    assert out[0].triggered is False
    assert out[0].snoozed_until is None


def test_derive_replaces_existing_reminder() -> None:
    task = _task(due_date=local_ms(2))
    other = _rem("r-other", "t2", 5)
    old = _rem("r-old", "t1", 5, triggered=True)

    out = derive_reminder((other, old), task, ReminderType.HOUR_1, new_id="r-new")
    assert [r.id for r in out] == ["r-other", "r-new"]
    assert len([r for r in out if r.task_id == "t1"]) == 1


def test_derive_removes_without_due_date_or_type() -> None:
    existing = (_rem("r1", "t1", 5), _rem("r2", "t2", 5))

    no_due = derive_reminder(existing, _task(), ReminderType.DAY_1, new_id="x")
    assert [r.id for r in no_due] == ["r2"]

    no_type = derive_reminder(existing, _task(due_date=local_ms(1)), ReminderType.NONE, new_id="x")
    assert [r.id for r in no_type] == ["r2"]


def test_scan_fires_once() -> None:
    task = _task()
    rem = _rem("r1", "t1", NOW)

    first = scan_due(NOW, [task], (rem,))
    assert first.reminders is not None
    assert [(t.id, r.id) for t, r in first.fired] == [("t1", "r1")]
    assert first.reminders[0].triggered is True

    second = scan_due(NOW, [task], first.reminders)
    assert second.fired == []
    assert second.reminders is None


def test_scan_ignores_future_snoozed_and_orphaned() -> None:
    tasks = [_task("live"), _task("done", completed=True)]
    reminders = (
        _rem("future", "live", NOW + 1),
        _rem("snoozed", "live", NOW - 10, snoozed_until=NOW + 60_000),
        _rem("orphan", "gone", NOW - 10),
        _rem("completed", "done", NOW - 10),
    )
    result = scan_due(NOW, tasks, reminders)
    assert result.fired == []
    assert result.reminders is None


def test_snooze_rearms_after_delay() -> None:
    task = _task()
    fired = scan_due(NOW, [task], (_rem("r1", "t1", NOW - 1),)).reminders
    assert fired is not None

    snoozed = snooze(fired, "r1", NOW)
    assert snoozed is not None
    assert snoozed[0].triggered is False
    assert snoozed[0].snoozed_until == NOW + 15 * 60_000

    assert scan_due(NOW + 14 * 60_000, [task], snoozed).fired == []
    again = scan_due(NOW + 15 * 60_000, [task], snoozed)
    assert [r.id for _, r in again.fired] == ["r1"]


def test_snooze_custom_delay_and_unknown_id() -> None:
    rems = (_rem("r1", "t1", NOW),)
    out = snooze(rems, "r1", NOW, delay_minutes=60)
    assert out is not None and out[0].snoozed_until == NOW + 60 * 60_000
    assert snooze(rems, "nope", NOW) is None


def test_reconcile_drops_missing_and_completed() -> None:
    tasks = [_task("live"), _task("done", completed=True)]
    rems = (_rem("a", "live", 1), _rem("b", "done", 1), _rem("c", "gone", 1))

    kept = reconcile(tasks, rems)
    assert kept is not None
    assert [r.id for r in kept] == ["a"]
    assert reconcile(tasks, kept) is None


def test_describe_reminder() -> None:
    task = _task(title="Dentist", due_date=local_ms(0, 15), reminder_type=ReminderType.HOUR_1)
    rem = replace(_rem("r1", "t1", local_ms(0, 14)), type=ReminderType.HOUR_1)
    assert describe_reminder(task, rem, NOW) == "Reminder: Dentist (due Today, 1 hour before)"

# tests/test_task_store.py

from __future__ import annotations

from dataclasses import replace

from taskflow.storage.kv_store import SqliteKVStore
from taskflow.tasks.task_models import Priority, ReminderType
from taskflow.tasks.task_store import StoreSnapshot, TaskStore

from .conftest import local_ms
from .fakes import InMemoryKVStore


def test_add_task_assigns_defaults_and_order(store: TaskStore, clock) -> None:
    first = store.add_task("  Buy milk  ")
    second = store.add_task("Call dentist", None, "high")

    assert first is not None and second is not None
    assert first.title == "Buy milk"
    assert first.created_at == clock.now_ms()
    assert first.priority is Priority.MEDIUM
    assert first.category == ""
    assert (first.order, second.order) == (1, 2)
    assert second.priority is Priority.HIGH
    assert [t.id for t in store.tasks()] == [first.id, second.id]


def test_order_continues_from_max_even_when_negative(kv: InMemoryKVStore, clock, ids) -> None:
    kv.data["tasks"] = [{"id": "old", "title": "legacy", "createdAt": 1, "order": -4}]
    store = TaskStore(kv, clock=clock, id_factory=ids)
    task = store.add_task("new")
    assert task is not None and task.order == 1


def test_empty_title_is_rejected_without_writing(store: TaskStore, kv: InMemoryKVStore) -> None:
    assert store.add_task("   ") is None
    assert store.add_task("") is None
    assert store.tasks() == ()
    assert kv.writes == 0


def test_add_task_without_due_date_forces_no_reminder(store: TaskStore) -> None:
    task = store.add_task("x", reminder_type=ReminderType.DAY_1)
    assert task is not None
    assert task.reminder_type is ReminderType.NONE
    assert store.reminders() == ()


def test_add_task_with_due_date_and_reminder_creates_one_reminder(store: TaskStore) -> None:
    due = local_ms(1, 9)
    task = store.add_task("Dentist", due_date=due, reminder_type="1hour")
    assert task is not None

    reminders = store.reminders()
    assert len(reminders) == 1
    assert reminders[0].task_id == task.id
    assert reminders[0].reminder_time == due - 60 * 60_000
    assert reminders[0].triggered is False


def test_add_task_clears_unknown_category(store: TaskStore) -> None:
    cat = store.add_category("Work")
    assert cat is not None

    ok = store.add_task("a", category_id=cat.id)
    dangling = store.add_task("b", category_id="does-not-exist")
    assert ok is not None and ok.category == cat.id
    assert dangling is not None and dangling.category == ""


def test_toggle_flips_and_manages_reminder(store: TaskStore) -> None:
    task = store.add_task("Pay rent", due_date=local_ms(2), reminder_type="1day")
    assert task is not None
    assert store.reminder_for_task(task.id) is not None

    done = store.toggle_task(task.id)
    assert done is not None and done.completed is True
    assert store.reminder_for_task(task.id) is None

    reopened = store.toggle_task(task.id)
    assert reopened is not None and reopened.completed is False
    rem = store.reminder_for_task(task.id)
    assert rem is not None and rem.type is ReminderType.DAY_1


def test_unknown_ids_are_silent_noops(store: TaskStore, kv: InMemoryKVStore) -> None:
    store.add_task("only")
    writes = kv.writes

    assert store.toggle_task("missing") is None
    assert store.delete_task("missing") is False
    assert store.update_task("missing", title="x") is None
    assert store.delete_category("missing") is False
    assert store.snooze_reminder("missing") is None
    assert kv.writes == writes


def test_delete_task_removes_its_reminder(store: TaskStore) -> None:
    keep = store.add_task("keep", due_date=local_ms(3), reminder_type="1day")
    gone = store.add_task("gone", due_date=local_ms(3), reminder_type="1day")
    assert keep is not None and gone is not None

    assert store.delete_task(gone.id) is True
    assert [t.id for t in store.tasks()] == [keep.id]
    assert [r.task_id for r in store.reminders()] == [keep.id]


def test_update_task_merges_fields_and_ignores_blank_title(store: TaskStore) -> None:
    task = store.add_task("Draft", notes="first")
    assert task is not None

    updated = store.update_task(task.id, title="   ", priority="low", notes="second")
    assert updated is not None
    assert updated.title == "Draft"
    assert updated.priority is Priority.LOW
    assert updated.notes == "second"
    assert updated.created_at == task.created_at
    assert updated.order == task.order

    renamed = store.update_task(task.id, title="  Final  ")
    assert renamed is not None and renamed.title == "Final"
    assert renamed.notes == "second"


def test_clearing_due_date_clears_reminder_type_and_reminder(store: TaskStore) -> None:
    task = store.add_task("Trip", due_date=local_ms(7), reminder_type="1week")
    assert task is not None and store.reminder_for_task(task.id) is not None

    updated = store.update_task(task.id, due_date=None)
    assert updated is not None
    assert updated.due_date is None
    assert updated.reminder_type is ReminderType.NONE
    assert store.reminder_for_task(task.id) is None


def test_changing_due_date_replaces_reminder(store: TaskStore) -> None:
    task = store.add_task("Call", due_date=local_ms(1, 10), reminder_type="30min")
    assert task is not None
    before = store.reminder_for_task(task.id)

    store.update_task(task.id, due_date=local_ms(2, 10))
    after = store.reminder_for_task(task.id)

    assert before is not None and after is not None
    assert after.id != before.id
    assert after.reminder_time == local_ms(2, 10) - 30 * 60_000
    assert len([r for r in store.reminders() if r.task_id == task.id]) == 1


def test_setting_reminder_type_none_removes_reminder(store: TaskStore) -> None:
    task = store.add_task("Call", due_date=local_ms(1), reminder_type="15min")
    assert task is not None

    updated = store.update_task(task.id, reminder_type="none")
    assert updated is not None and updated.reminder_type is ReminderType.NONE
    assert store.reminders() == ()


def test_updating_unrelated_field_keeps_triggered_reminder(store: TaskStore) -> None:
    task = store.add_task("Call", due_date=local_ms(1), reminder_type="15min")
    assert task is not None
    store.update_reminders(
        lambda snap: (tuple(replace(r, triggered=True) for r in snap.reminders), None)
    )

    store.update_task(task.id, notes="bring papers")
    rem = store.reminder_for_task(task.id)
    assert rem is not None and rem.triggered is True


def test_completing_through_update_removes_reminder(store: TaskStore) -> None:
    task = store.add_task("Call", due_date=local_ms(1), reminder_type="15min")
    assert task is not None

    store.update_task(task.id, completed=True)
    assert store.reminders() == ()


def test_category_names_unique_case_insensitive(store: TaskStore) -> None:
    work = store.add_category("Work")
    assert work is not None
    assert store.add_category("work") is None
    assert store.add_category("  WORK ") is None
    assert store.add_category("   ") is None
    home = store.add_category("Home", color="green")
    assert home is not None and home.color == "green"

    names = [c.name.lower() for c in store.categories()]
    assert names == ["work", "home"]
    assert len(set(names)) == len(names)


def test_delete_category_cascades_to_tasks(store: TaskStore) -> None:
    cat = store.add_category("Errands")
    other = store.add_category("Work")
    assert cat is not None and other is not None

    a = store.add_task("a", category_id=cat.id)
    b = store.add_task("b", category_id=cat.id)
    c = store.add_task("c", category_id=other.id)
    assert a is not None and b is not None and c is not None

    assert store.delete_category(cat.id) is True

    by_id = {t.id: t for t in store.tasks()}
    assert by_id[a.id].category == ""
    assert by_id[b.id].category == ""
    assert by_id[c.id].category == other.id
    assert cat.id not in {x.id for x in store.categories()}


def test_listeners_receive_committed_snapshots(store: TaskStore) -> None:
    seen: list[StoreSnapshot] = []
    unsubscribe = store.subscribe(seen.append)

    task = store.add_task("watch me")
    assert task is not None
    assert len(seen) == 1
    assert seen[0].tasks[0].id == task.id

    # No-op mutations do not notify.
    store.toggle_task("missing")
    store.add_task("")
    assert len(seen) == 1

    unsubscribe()
    store.toggle_task(task.id)
    assert len(seen) == 1


def test_failing_listener_does_not_break_mutation(store: TaskStore) -> None:
    calls: list[int] = []

    def broken(_snap: StoreSnapshot) -> None:
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(lambda snap: calls.append(len(snap.tasks)))

    assert store.add_task("still saved") is not None
    assert calls == [1]
    assert len(store.tasks()) == 1


def test_view_reflects_latest_write(store: TaskStore) -> None:
    task = store.add_task("one")
    assert task is not None
    assert store.view("pending").stats.pending == 1

    store.toggle_task(task.id)
    view = store.view("pending")
    assert view.tasks == ()
    assert view.stats.completed == 1


def test_sqlite_backend_roundtrip(sqlite_store: TaskStore, tmp_path, clock, ids) -> None:
    cat = sqlite_store.add_category("Work")
    assert cat is not None
    task = sqlite_store.add_task("Ship it", category_id=cat.id, due_date=local_ms(1), reminder_type="2hours")
    assert task is not None
    sqlite_store.delete_category(cat.id)

    # A second store over the same file sees the committed state.
    reopened = TaskStore(SqliteKVStore(tmp_path / "taskflow.sqlite3"), clock=clock, id_factory=ids)
    snap = reopened.snapshot()
    assert [t.title for t in snap.tasks] == ["Ship it"]
    assert snap.tasks[0].category == ""
    assert snap.categories == ()
    assert len(snap.reminders) == 1
    assert snap.reminders[0].reminder_time == local_ms(1) - 120 * 60_000


def test_partially_malformed_record_survives_unrelated_write(kv: InMemoryKVStore, clock, ids) -> None:
    kv.data["tasks"] = [
        {"id": "legacy", "title": "Pay rent", "completed": False, "createdAt": 1, "order": 1, "dueDate": ""}
    ]
    store = TaskStore(kv, clock=clock, id_factory=ids)

    assert store.add_task("Buy milk") is not None

    stored = {r["id"]: r for r in kv.data["tasks"]}
    assert "legacy" in stored
    assert stored["legacy"]["title"] == "Pay rent"
    assert "dueDate" not in stored["legacy"]
    assert len(stored) == 2


def test_resetting_same_reminder_type_rearms_fired_reminder(store: TaskStore) -> None:
    due = local_ms(2, 10)
    task = store.add_task("Call", due_date=due, reminder_type="1day")
    assert task is not None
    store.update_reminders(
        lambda snap: (tuple(replace(r, triggered=True) for r in snap.reminders), None)
    )
    before = store.reminder_for_task(task.id)
    assert before is not None and before.triggered is True

    store.update_task(task.id, reminder_type=ReminderType.DAY_1, due_date=due)
    after = store.reminder_for_task(task.id)

    assert after is not None
    assert after.id != before.id
    assert after.triggered is False
    assert after.reminder_time == due - 1440 * 60_000
    assert len(store.reminders()) == 1

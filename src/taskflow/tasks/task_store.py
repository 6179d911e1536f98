# src/taskflow/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, TypeVar

from ..core.ports import (
    CATEGORIES_KEY,
    REMINDERS_KEY,
    TASKS_KEY,
    Clock,
    IdGenerator,
    KeyValueStore,
    SystemClock,
    new_id,
)
from .reminders import DEFAULT_SNOOZE_MINUTES, derive_reminder, remove_reminder_for, snooze
from .task_models import (
    Category,
    Priority,
    Reminder,
    ReminderType,
    Task,
    hydrate_categories,
    hydrate_reminders,
    hydrate_tasks,
)
from .task_reorder import reorder_tasks
from .task_view import FilterSpec, TaskView, ViewCache

logger = logging.getLogger(__name__)

_UNSET: Any = object()

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class StoreSnapshot:
    tasks: tuple[Task, ...] = ()
    categories: tuple[Category, ...] = ()
    reminders: tuple[Reminder, ...] = ()

    def find_task(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def has_category(self, category_id: str) -> bool:
        return any(c.id == category_id for c in self.categories)


Listener = Callable[[StoreSnapshot], None]
Transform = Callable[[StoreSnapshot], tuple[StoreSnapshot | None, T]]


class TaskStore:
    """
    Authoritative task/category/reminder state on top of a KeyValueStore.

    Every mutation is a pure transform StoreSnapshot -> StoreSnapshot applied in
    one atomic read-modify-write over the three keys, so readers never observe
    a task without its cascaded reminder/category changes.

    Result signalling:
    - validation rejections (empty title, duplicate category) return None
    - unknown ids are silent no-ops (None / False)
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        clock: Clock | None = None,
        id_factory: IdGenerator | None = None,
    ) -> None:
        self._kv = kv
        self._clock: Clock = clock or SystemClock()
        self._new_id: IdGenerator = id_factory or new_id
        self._listeners: list[Listener] = []
        self._view_cache = ViewCache()

    @property
    def clock(self) -> Clock:
        return self._clock

    # ---- low-level helpers ----

    @staticmethod
    def _defaults() -> dict[str, Any]:
        return {TASKS_KEY: [], CATEGORIES_KEY: [], REMINDERS_KEY: []}

    @staticmethod
    def _hydrate(values: dict[str, Any]) -> StoreSnapshot:
        return StoreSnapshot(
            tasks=hydrate_tasks(values.get(TASKS_KEY)),
            categories=hydrate_categories(values.get(CATEGORIES_KEY)),
            reminders=hydrate_reminders(values.get(REMINDERS_KEY)),
        )

    def _transact(self, transform: Transform[T]) -> T:
        """
        Run `transform` against the latest committed state and write what changed.

        The transform returns (next_snapshot or None, result). Listeners are
        notified after commit, only when something actually changed.
        """
        holder: dict[str, Any] = {}

        def updater(values: dict[str, Any]) -> dict[str, Any] | None:
            before = self._hydrate(values)
            after, result = transform(before)
            holder["result"] = result
            if after is None or after == before:
                return None

            holder["after"] = after
            changes: dict[str, Any] = {}
            if after.tasks != before.tasks:
                changes[TASKS_KEY] = [t.to_record() for t in after.tasks]
            if after.categories != before.categories:
                changes[CATEGORIES_KEY] = [c.to_record() for c in after.categories]
            if after.reminders != before.reminders:
                changes[REMINDERS_KEY] = [r.to_record() for r in after.reminders]
            return changes

        self._kv.update_many(self._defaults(), updater)

        after = holder.get("after")
        if after is not None:
            self._emit(after)
        return holder["result"]

    def _emit(self, snapshot: StoreSnapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Store listener failed: %r", listener)

    def _category_or_empty(self, snap: StoreSnapshot, category_id: str | None) -> str:
        cid = (category_id or "").strip()
        if cid and not snap.has_category(cid):
            logger.info("Unknown category id=%s; task left uncategorized", cid)
            return ""
        return cid

    def _rederive(self, reminders: tuple[Reminder, ...], task: Task) -> tuple[Reminder, ...]:
        if task.completed:
            return remove_reminder_for(reminders, task.id)
        return derive_reminder(reminders, task, task.reminder_type, new_id=self._new_id())

    # ---- change subscription ----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---- readers ----

    def snapshot(self) -> StoreSnapshot:
        return self._hydrate({k: self._kv.get(k, d) for k, d in self._defaults().items()})

    def tasks(self) -> tuple[Task, ...]:
        return hydrate_tasks(self._kv.get(TASKS_KEY, []))

    def categories(self) -> tuple[Category, ...]:
        return hydrate_categories(self._kv.get(CATEGORIES_KEY, []))

    def reminders(self) -> tuple[Reminder, ...]:
        return hydrate_reminders(self._kv.get(REMINDERS_KEY, []))

    def get_task(self, task_id: str) -> Task | None:
        for t in self.tasks():
            if t.id == task_id:
                return t
        return None

    def reminder_for_task(self, task_id: str) -> Reminder | None:
        for r in self.reminders():
            if r.task_id == task_id:
                return r
        return None

    def view(self, active_filter: FilterSpec = "all") -> TaskView:
        return self._view_cache.get(self.tasks(), active_filter, now_ms=self._clock.now_ms())

    # ---- task mutations ----

    def add_task(
        self,
        title: str,
        category_id: str | None = None,
        priority: Priority | str = Priority.MEDIUM,
        due_date: int | None = None,
        notes: str | None = None,
        reminder_type: ReminderType | str = ReminderType.NONE,
    ) -> Task | None:
        clean_title = (title or "").strip()
        if not clean_title:
            logger.info("add_task rejected: empty title")
            return None

        now = self._clock.now_ms()

        def transform(snap: StoreSnapshot) -> tuple[StoreSnapshot, Task]:
            top = max((t.order for t in snap.tasks), default=0)
            task = Task(
                id=self._new_id(),
                title=clean_title,
                created_at=now,
                order=max(top, 0) + 1,
                completed=False,
                category=self._category_or_empty(snap, category_id),
                priority=Priority.parse(priority),
                due_date=int(due_date) if due_date is not None else None,
                notes=notes,
                reminder_type=ReminderType.parse(reminder_type) if due_date is not None else ReminderType.NONE,
            )
            return (
                replace(
                    snap,
                    tasks=snap.tasks + (task,),
                    reminders=self._rederive(snap.reminders, task),
                ),
                task,
            )

        task = self._transact(transform)
        logger.debug(
            "Task added id=%s priority=%s due=%s reminder=%s",
            task.id,
            task.priority.value,
            task.due_date,
            task.reminder_type.value,
        )
        return task

    def toggle_task(self, task_id: str) -> Task | None:
        def transform(snap: StoreSnapshot) -> tuple[StoreSnapshot | None, Task | None]:
            task = snap.find_task(task_id)
            if task is None:
                return None, None
            flipped = replace(task, completed=not task.completed)
            return (
                replace(
                    snap,
                    tasks=tuple(flipped if t.id == task_id else t for t in snap.tasks),
                    reminders=self._rederive(snap.reminders, flipped),
                ),
                flipped,
            )

        result = self._transact(transform)
        if result is not None:
            logger.debug("Task %s -> completed=%s", task_id, result.completed)
        return result

    def delete_task(self, task_id: str) -> bool:
        def transform(snap: StoreSnapshot) -> tuple[StoreSnapshot | None, bool]:
            if snap.find_task(task_id) is None:
                return None, False
            return (
                replace(
                    snap,
                    tasks=tuple(t for t in snap.tasks if t.id != task_id),
                    reminders=remove_reminder_for(snap.reminders, task_id),
                ),
                True,
            )

        deleted = self._transact(transform)
        if deleted:
            logger.debug("Task deleted id=%s", task_id)
        return deleted

    def update_task(
        self,
        task_id: str,
        *,
        title: Any = _UNSET,
        completed: Any = _UNSET,
        category: Any = _UNSET,
        priority: Any = _UNSET,
        due_date: Any = _UNSET,
        notes: Any = _UNSET,
        reminder_type: Any = _UNSET,
    ) -> Task | None:
        """
        Merge the provided fields into a task. Omitted fields stay as they are.

        - a title that trims to empty is ignored (the old title is kept)
        - due_date=None clears the due date and forces reminder_type to NONE
        - passing due_date or reminder_type re-derives the task's reminder (a fresh, untriggered one)
        """

        def transform(snap: StoreSnapshot) -> tuple[StoreSnapshot | None, Task | None]:
            task = snap.find_task(task_id)
            if task is None:
                return None, None

            fields: dict[str, Any] = {}
            if title is not _UNSET:
                clean = str(title or "").strip()
                if clean:
                    fields["title"] = clean
                else:
                    logger.info("update_task id=%s: empty title ignored", task_id)
            if completed is not _UNSET:
                fields["completed"] = bool(completed)
            if category is not _UNSET:
                fields["category"] = self._category_or_empty(snap, category)
            if priority is not _UNSET:
                fields["priority"] = Priority.parse(priority)
            if due_date is not _UNSET:
                fields["due_date"] = int(due_date) if due_date is not None else None
            if notes is not _UNSET:
                fields["notes"] = notes
            if reminder_type is not _UNSET:
                fields["reminder_type"] = ReminderType.parse(reminder_type)

            updated = replace(task, **fields)
            if updated.due_date is None and updated.reminder_type is not ReminderType.NONE:
                updated = replace(updated, reminder_type=ReminderType.NONE)

            reminders = snap.reminders
            schedule_set = due_date is not _UNSET or reminder_type is not _UNSET
            has_reminder = any(r.task_id == task_id for r in reminders)
            if updated.completed:
                reminders = remove_reminder_for(reminders, task_id)
            elif schedule_set or task.completed or (updated.has_reminder and not has_reminder):
                reminders = self._rederive(reminders, updated)

            return (
                replace(
                    snap,
                    tasks=tuple(updated if t.id == task_id else t for t in snap.tasks),
                    reminders=reminders,
                ),
                updated,
            )

        return self._transact(transform)

    def reorder_task(self, active_filter: FilterSpec, moved_id: str, target_id: str) -> bool:
        now = self._clock.now_ms()

        def transform(snap: StoreSnapshot) -> tuple[StoreSnapshot | None, bool]:
            reordered = reorder_tasks(snap.tasks, active_filter, moved_id, target_id, now_ms=now)
            if reordered is snap.tasks:
                return None, False
            return replace(snap, tasks=reordered), True

        moved = self._transact(transform)
        if moved:
            logger.debug("Task %s moved to position of %s (filter=%s)", moved_id, target_id, active_filter)
        return moved

    # ---- categories ----

    def add_category(self, name: str, color: str | None = None) -> Category | None:
        clean = (name or "").strip()
        if not clean:
            logger.info("add_category rejected: empty name")
            return None

        def transform(snap: StoreSnapshot) -> tuple[StoreSnapshot | None, Category | None]:
            lowered = clean.lower()
            if any(c.name.lower() == lowered for c in snap.categories):
                return None, None
            cat = Category(id=self._new_id(), name=clean, color=color)
            return replace(snap, categories=snap.categories + (cat,)), cat

        cat = self._transact(transform)
        if cat is None:
            logger.info("add_category rejected: duplicate category %r", clean)
        else:
            logger.debug("Category added id=%s name=%s", cat.id, cat.name)
        return cat

    def delete_category(self, category_id: str) -> bool:
        def transform(snap: StoreSnapshot) -> tuple[StoreSnapshot | None, bool]:
            if not snap.has_category(category_id):
                return None, False
            return (
                replace(
                    snap,
                    categories=tuple(c for c in snap.categories if c.id != category_id),
                    tasks=tuple(
                        replace(t, category="") if t.category == category_id else t for t in snap.tasks
                    ),
                ),
                True,
            )

        deleted = self._transact(transform)
        if deleted:
            logger.debug("Category deleted id=%s", category_id)
        return deleted

    # ---- reminders ----

    def snooze_reminder(
        self,
        reminder_id: str,
        delay_minutes: int = DEFAULT_SNOOZE_MINUTES,
    ) -> Reminder | None:
        now = self._clock.now_ms()

        def transform(snap: StoreSnapshot) -> tuple[StoreSnapshot | None, Reminder | None]:
            updated = snooze(snap.reminders, reminder_id, now, delay_minutes)
            if updated is None:
                return None, None
            rem = next(r for r in updated if r.id == reminder_id)
            return replace(snap, reminders=updated), rem

        return self._transact(transform)

    def update_reminders(
        self,
        fn: Callable[[StoreSnapshot], tuple[tuple[Reminder, ...] | None, T]],
    ) -> T:
        """
        Atomic reminder-only transform (used by the reminder scheduler).

        `fn` returns (new reminders or None for "unchanged", result).
        """

        def transform(snap: StoreSnapshot) -> tuple[StoreSnapshot | None, T]:
            reminders, result = fn(snap)
            if reminders is None:
                return None, result
            return replace(snap, reminders=reminders), result

        return self._transact(transform)

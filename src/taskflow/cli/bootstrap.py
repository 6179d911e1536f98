# src/taskflow/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (KV store, task store, notifier),
- builds the reminder scheduler from the same state.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..connectors.console_notifier import ConsoleNotifier
from ..core.ports import SystemClock
from ..core.state import AppState
from ..storage.kv_store import SqliteKVStore
from ..tasks.reminder_scheduler import DEFAULT_REMINDER_INTERVAL_SECONDS, ReminderScheduler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    clock = SystemClock()
    store = TaskStore(SqliteKVStore(settings.db_path), clock=clock)

    snap = store.snapshot()
    logger.info(
        "Loaded %d tasks, %d categories, %d reminders from %s",
        len(snap.tasks),
        len(snap.categories),
        len(snap.reminders),
        settings.db_path,
    )

    return AppState(
        settings=settings,
        store=store,
        notifier=ConsoleNotifier(clock=clock),
    )


def create_scheduler(state: AppState) -> ReminderScheduler:
    interval = float(getattr(state.settings, "reminder_interval_seconds", DEFAULT_REMINDER_INTERVAL_SECONDS))
    return ReminderScheduler(state.store, state.notifier, interval_seconds=interval)

# src/taskflow/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..tasks.task_store import TaskStore
from ..tasks.task_view import FilterSpec, TaskFilter
from .ports import NotificationSink


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    store: TaskStore
    notifier: NotificationSink

    active_filter: FilterSpec = TaskFilter.ALL
    # Task ids in the order last shown to the user; console commands address tasks by 1-based position.
    visible_ids: list[str] = field(default_factory=list)

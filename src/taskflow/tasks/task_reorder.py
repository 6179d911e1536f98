# src/taskflow/tasks/task_reorder.py

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from .task_models import Task
from .task_view import FilterSpec, visible_tasks

logger = logging.getLogger(__name__)


def move_item(items: list[Task], from_index: int, to_index: int) -> list[Task]:
    out = list(items)
    moved = out.pop(from_index)
    out.insert(to_index, moved)
    return out


def reorder_tasks(
    tasks: Sequence[Task],
    active_filter: FilterSpec,
    moved_id: str,
    target_id: str,
    *,
    now_ms: int,
) -> tuple[Task, ...]:
    """
    Place `moved_id` at `target_id`'s position within the view of `active_filter`.

    Only the visible subset is renumbered (order = index); tasks outside the
    filter keep their order values and relative position. The result is the
    untouched tasks followed by the renumbered subset.

    Returns the input unchanged (same tuple) when either id is not visible
    or both ids are the same task.
    """
    original = tuple(tasks)
    visible = visible_tasks(original, active_filter, now_ms=now_ms)
    index = {t.id: i for i, t in enumerate(visible)}

    src = index.get(moved_id)
    dst = index.get(target_id)
    if src is None or dst is None:
        logger.debug(
            "Reorder ignored: moved=%s target=%s not both visible in filter=%s",
            moved_id,
            target_id,
            active_filter,
        )
        return original
    if src == dst:
        return original

    renumbered = [replace(t, order=i) for i, t in enumerate(move_item(visible, src, dst))]
    untouched = tuple(t for t in original if t.id not in index)
    return untouched + tuple(renumbered)

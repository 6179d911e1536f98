# src/taskflow/tasks/reminder_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

A small polling loop that, on every tick:
- drops reminders of deleted/completed tasks (reconcile),
- marks due reminders as triggered (scan),
- hands each fired reminder to the injected notification sink.

Reconcile + scan run as one atomic reminder update against the latest committed
store state, so a tick racing a user mutation never writes a stale snapshot back.
How the message is displayed belongs to the sink, not the scheduler.
"""

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass

from ..core.ports import NotificationSink
from .reminders import reconcile, scan_due
from .task_models import Reminder, Task
from .task_store import StoreSnapshot, TaskStore

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_INTERVAL_SECONDS = 60.0


class ReminderScheduler:
    def __init__(
        self,
        store: TaskStore,
        sink: NotificationSink,
        *,
        interval_seconds: float = DEFAULT_REMINDER_INTERVAL_SECONDS,
    ) -> None:
        self._store = store
        self._sink = sink
        self._interval = max(0.01, float(interval_seconds))
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> list[tuple[Task, Reminder]]:
        """Run one reconcile + scan pass; returns the fired (task, reminder) pairs."""
        now_ms = self._store.clock.now_ms()

        def step(snap: StoreSnapshot) -> tuple[tuple[Reminder, ...] | None, list[tuple[Task, Reminder]]]:
            reconciled = reconcile(snap.tasks, snap.reminders)
            current = reconciled if reconciled is not None else snap.reminders
            result = scan_due(now_ms, snap.tasks, current)
            if result.reminders is not None:
                return result.reminders, result.fired
            return reconciled, result.fired

        fired = self._store.update_reminders(step)

        for task, reminder in fired:
            try:
                self._sink.notify(task, reminder)
                logger.info("Reminder %s fired for task %s", reminder.id, task.id)
            except Exception:
                logger.exception("notify failed reminder=%s task=%s", reminder.id, task.id)
        return fired

    async def run(self) -> None:
        """
        Tick immediately, then every interval.

        To stop the scheduler, cancel the coroutine/task (or call stop()).
        """
        while True:
            try:
                self.tick()
            except Exception:
                logger.exception("Reminder tick failed")
            await asyncio.sleep(self._interval)

    def start(self) -> asyncio.Task[None]:
        """Schedule run() on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
            logger.info("Reminder scheduler started (interval=%.1fs)", self._interval)
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Reminder scheduler stopped")


@dataclass(slots=True)
class ReminderBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Failed to signal reminder thread stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_reminders_in_background(scheduler: ReminderScheduler) -> ReminderBackgroundRunner | None:
    """
    Run the reminder loop in a background thread with its own event loop.

    The console REPL is blocking (input()), so the async loop cannot share its thread.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    async def _main(stop_event: asyncio.Event) -> None:
        scheduler.start()
        try:
            await stop_event.wait()
        finally:
            await scheduler.stop()

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_main(stop_event))
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="reminders", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Reminder thread did not initialize properly.")
        return None

    logger.info("Reminder background thread started.")
    return ReminderBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)

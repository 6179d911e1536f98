# src/taskflow/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.state import AppState
from ..tasks.due_dates import days_until_due, format_due_date, is_overdue, parse_due_date
from ..tasks.reminders import DEFAULT_SNOOZE_MINUTES
from ..tasks.task_models import Category, Priority, ReminderType, Task
from ..tasks.task_view import TaskFilter

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _category_names(state: AppState) -> dict[str, str]:
    return {c.id: c.name for c in state.store.categories()}


def _find_category(state: AppState, name_or_id: str) -> Category | None:
    key = name_or_id.strip().lower()
    for c in state.store.categories():
        if c.id == name_or_id or c.name.lower() == key:
            return c
    return None


def _resolve_filter(state: AppState, raw: str) -> str | None:
    try:
        return TaskFilter(raw.lower())
    except ValueError:
        pass
    cat = _find_category(state, raw)
    return cat.id if cat else None


def _task_at(state: AppState, raw: str) -> Task | None:
    """Resolve a 1-based position in the last shown list to a task."""
    try:
        pos = int(raw)
    except ValueError:
        return None
    if pos < 1 or pos > len(state.visible_ids):
        return None
    return state.store.get_task(state.visible_ids[pos - 1])


def format_task_line(pos: int, task: Task, categories: dict[str, str], now_ms: int) -> str:
    mark = "x" if task.completed else " "
    details = [task.priority.value]
    if task.due_date is not None:
        label = format_due_date(task.due_date, now_ms)
        if not task.completed and is_overdue(task.due_date, now_ms):
            label = f"OVERDUE {label} ({-days_until_due(task.due_date, now_ms)}d)"
        details.append(f"due {label}")
        if task.reminder_type is not ReminderType.NONE:
            details.append(f"remind {task.reminder_type.label}")
    if task.category:
        details.append(f"#{categories.get(task.category, '?')}")
    line = f"{pos:>3}. [{mark}] {task.title}  ({', '.join(details)})"
    if task.notes:
        line += f"\n       {task.notes.splitlines()[0]}"
    return line


def _render(state: AppState) -> str:
    view = state.store.view(state.active_filter)
    state.visible_ids = [t.id for t in view.tasks]
    if not view.tasks:
        if view.stats.total == 0:
            return "No tasks yet! Add your first task with /add <title>."
        return f"No tasks match filter '{state.active_filter}'."

    now_ms = state.store.clock.now_ms()
    names = _category_names(state)
    lines = [f"Tasks ({state.active_filter}):"]
    lines.extend(format_task_line(i, t, names, now_ms) for i, t in enumerate(view.tasks, start=1))
    return "\n".join(lines)


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <title words> [!high|!medium|!low] [#category] [due:YYYY-MM-DD[THH:MM]] [remind:<type>]
    """
    title_words: list[str] = []
    priority = Priority.MEDIUM
    category_id: str | None = None
    due_date: int | None = None
    reminder_type = ReminderType.NONE

    for word in args:
        if word.startswith("!") and len(word) > 1:
            priority = Priority.parse(word[1:])
        elif word.startswith("#") and len(word) > 1:
            cat = _find_category(state, word[1:])
            if cat is None:
                return f"Unknown category: {word[1:]}. Create it with /cat add {word[1:]}."
            category_id = cat.id
        elif word.startswith("due:"):
            try:
                due_date = parse_due_date(word[4:])
            except ValueError:
                return f"Invalid due date: {word[4:]}. Use YYYY-MM-DD or YYYY-MM-DDTHH:MM."
        elif word.startswith("remind:"):
            reminder_type = ReminderType.parse(word[7:])
        else:
            title_words.append(word)

    task = state.store.add_task(
        " ".join(title_words),
        category_id=category_id,
        priority=priority,
        due_date=due_date,
        reminder_type=reminder_type,
    )
    if task is None:
        return "Task title cannot be empty."
    return f"Task added: {task.title}"


def cmd_list(state: AppState, args: list[str]) -> str:
    if args:
        resolved = _resolve_filter(state, args[0])
        if resolved is None:
            return f"Unknown filter: {args[0]}."
        state.active_filter = resolved
    return _render(state)


def cmd_done(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /done <n>"
    task = _task_at(state, args[0])
    if task is None:
        return f"No task #{args[0]} in the current list."

    had_reminder = state.store.reminder_for_task(task.id) is not None
    toggled = state.store.toggle_task(task.id)
    if toggled is None:
        return "Task no longer exists."

    if emit:
        rem = state.store.reminder_for_task(toggled.id)
        with contextlib.suppress(Exception):
            if had_reminder and rem is None:
                emit(f"[REMINDER] Cancelled for: {toggled.title}")
            elif rem is not None and not had_reminder:
                emit(f"[REMINDER] Re-armed ({toggled.reminder_type.label}) for: {toggled.title}")
    return f"{'Completed' if toggled.completed else 'Reopened'}: {toggled.title}"


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /del <n>"
    task = _task_at(state, args[0])
    if task is None or not state.store.delete_task(task.id):
        return f"No task #{args[0]} in the current list."
    state.visible_ids = [i for i in state.visible_ids if i != task.id]
    return f"Task deleted: {task.title}"


def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <n> title <text>
    /edit <n> notes <text|->
    /edit <n> priority <high|medium|low>
    /edit <n> category <name|->
    """
    if len(args) < 3:
        return "Usage: /edit <n> <title|notes|priority|category> <value>"
    task = _task_at(state, args[0])
    if task is None:
        return f"No task #{args[0]} in the current list."

    field_name = args[1].lower()
    value = " ".join(args[2:])

    if field_name == "title":
        updated = state.store.update_task(task.id, title=value)
    elif field_name == "notes":
        updated = state.store.update_task(task.id, notes=None if value == "-" else value)
    elif field_name == "priority":
        updated = state.store.update_task(task.id, priority=value)
    elif field_name == "category":
        if value == "-":
            updated = state.store.update_task(task.id, category="")
        else:
            cat = _find_category(state, value)
            if cat is None:
                return f"Unknown category: {value}."
            updated = state.store.update_task(task.id, category=cat.id)
    else:
        return f"Unknown field: {field_name}."

    if updated is None:
        return "Task no longer exists."
    return f"Task updated: {updated.title}"


def cmd_due(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /due <n> <YYYY-MM-DD[THH:MM]|none>"
    task = _task_at(state, args[0])
    if task is None:
        return f"No task #{args[0]} in the current list."

    if args[1].lower() in ("none", "-"):
        updated = state.store.update_task(task.id, due_date=None)
    else:
        try:
            due = parse_due_date(args[1])
        except ValueError:
            return f"Invalid due date: {args[1]}."
        updated = state.store.update_task(task.id, due_date=due)

    if updated is None:
        return "Task no longer exists."
    if updated.due_date is None:
        return f"Due date cleared: {updated.title}"
    return f"Due {format_due_date(updated.due_date, state.store.clock.now_ms())}: {updated.title}"


def cmd_remind(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        choices = ", ".join(r.value for r in ReminderType)
        return f"Usage: /remind <n> <type>  (types: {choices})"
    task = _task_at(state, args[0])
    if task is None:
        return f"No task #{args[0]} in the current list."
    if task.due_date is None:
        return "Set a due date first (/due) - reminders are relative to it."

    reminder_type = ReminderType.parse(args[1])
    updated = state.store.update_task(task.id, reminder_type=reminder_type)
    if updated is None:
        return "Task no longer exists."
    return f"Reminder: {updated.reminder_type.label} ({updated.title})"


def cmd_move(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /move <n> <m>  (place task n at position m)"
    moved = _task_at(state, args[0])
    target = _task_at(state, args[1])
    if moved is None or target is None:
        return "Both positions must refer to tasks in the current list."
    if not state.store.reorder_task(state.active_filter, moved.id, target.id):
        return "Nothing to move."
    return _render(state)


def cmd_category(state: AppState, args: list[str]) -> str:
    """
    /cat            -> list categories
    /cat add <name> -> create a category
    /cat del <name> -> delete a category (its tasks become uncategorized)
    """
    sub = args[0].lower() if args else "list"

    if sub == "list":
        cats = state.store.categories()
        if not cats:
            return "No categories yet. Create one with /cat add <name>."
        return "Categories:\n" + "\n".join(f"  #{c.name}" for c in cats)

    name = " ".join(args[1:]).strip()
    if sub == "add":
        if not name:
            return "Usage: /cat add <name>"
        cat = state.store.add_category(name)
        if cat is None:
            return "Category already exists."
        return f"Category created: {cat.name}"

    if sub in ("del", "delete", "rm"):
        cat = _find_category(state, name)
        if cat is None or not state.store.delete_category(cat.id):
            return f"Unknown category: {name}."
        if state.active_filter == cat.id:
            state.active_filter = TaskFilter.ALL
        return f"Category deleted: {cat.name}"

    return "Usage: /cat [list] | /cat add <name> | /cat del <name>"


def cmd_stats(state: AppState, args: list[str]) -> str:
    s = state.store.view(state.active_filter).stats
    return (
        "Stats:\n"
        f"  Total: {s.total}  Completed: {s.completed}  Pending: {s.pending}\n"
        f"  Priority: high {s.high} / medium {s.medium} / low {s.low}\n"
        f"  Overdue: {s.overdue}  Due today: {s.due_today}  No due date: {s.no_due_date}\n"
        f"  With reminders: {s.with_reminders}"
    )


def cmd_snooze(state: AppState, args: list[str]) -> str:
    """
    /snooze              -> snooze the last fired reminder
    /snooze <n> [min]    -> snooze the reminder of task n
    """
    default_minutes = int(getattr(state.settings, "snooze_minutes", DEFAULT_SNOOZE_MINUTES))
    reminder_id: str | None = None
    minutes = default_minutes

    if args:
        task = _task_at(state, args[0])
        if task is None:
            return f"No task #{args[0]} in the current list."
        rem = state.store.reminder_for_task(task.id)
        if rem is None:
            return f"Task has no reminder: {task.title}"
        reminder_id = rem.id
        if len(args) > 1:
            try:
                minutes = max(1, int(args[1]))
            except ValueError:
                return f"Invalid minutes: {args[1]}."
    else:
        reminder_id = getattr(state.notifier, "last_reminder_id", None)
        if reminder_id is None:
            return "No reminder to snooze."

    rem = state.store.snooze_reminder(reminder_id, minutes)
    if rem is None:
        return "Reminder no longer exists."
    logger.debug("Reminder %s snoozed for %s min", rem.id, minutes)
    return f"Snoozed for {minutes} minutes."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: /add <title> [!high|!low] [#category] [due:YYYY-MM-DD] [remind:1day].",
)
registry.register(
    "list",
    cmd_list,
    help_text="Show tasks: /list [all|pending|completed|high|medium|low|overdue|today|no-due-date|<category>].",
    aliases=["ls", "filter"],
)
registry.register("done", cmd_done, help_text="Toggle completion: /done <n>.", aliases=["toggle"])
registry.register("del", cmd_delete, help_text="Delete a task: /del <n>.", aliases=["rm"])
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <n> <title|notes|priority|category> <value>.")
registry.register("due", cmd_due, help_text="Set or clear a due date: /due <n> <YYYY-MM-DD|none>.")
registry.register("remind", cmd_remind, help_text="Set a reminder: /remind <n> <15min|1hour|1day|...|none>.")
registry.register("move", cmd_move, help_text="Reorder within the current list: /move <n> <m>.")
registry.register("cat", cmd_category, help_text="Categories: /cat [list] | add <name> | del <name>.")
registry.register("stats", cmd_stats, help_text="Show task statistics.")
registry.register("snooze", cmd_snooze, help_text="Snooze a reminder: /snooze [n] [minutes].")

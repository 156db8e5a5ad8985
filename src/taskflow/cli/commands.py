# src/taskflow/cli/commands.py

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from datetime import datetime

from ..core.dates import (
    format_display_date,
    format_month_display,
    format_month_year,
    parse_date,
    parse_year_month,
    today,
)
from ..core.state import AppState
from ..reports.report import (
    available_tags,
    calendar_counts,
    completion_grade,
    current_streak,
    filter_tasks,
    monthly_report,
)
from ..tasks.errors import NotAuthenticatedError
from ..tasks.task_models import Priority, Task, TaskFormData, validate_form

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

# date-shaped first word of /add; validate_form decides whether it is a real date
_DATE_LIKE = re.compile(r"[0-9]{1,4}-[0-9]{1,2}-[0-9]{1,2}")

logger = logging.getLogger(__name__)

SHORT_ID_LEN = 8


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

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

    async def handle(self, state: AppState, line: str) -> str | None:
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

        return await handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def _short(task: Task) -> str:
    return task.id[:SHORT_ID_LEN]


def format_task(task: Task) -> str:
    box = "[x]" if task.completed else "[ ]"
    line = f"{box} {_short(task)}  {task.title}"
    if task.priority:
        line += f"  ({task.priority.value})"
    if task.tags:
        line += "  " + " ".join(f"#{t}" for t in task.tags)
    if task.notes:
        line += f"\n      {task.notes}"
    return line


def _format_group(tasks: list[Task]) -> list[str]:
    pending = [t for t in tasks if not t.completed]
    done = [t for t in tasks if t.completed]
    lines: list[str] = []
    if pending:
        lines.append(f"  Pending ({len(pending)}):")
        lines.extend(f"    {format_task(t)}" for t in pending)
    if done:
        lines.append(f"  Completed ({len(done)}):")
        lines.extend(f"    {format_task(t)}" for t in done)
    return lines


def _resolve(state: AppState, prefix: str) -> Task | str:
    """Task for an id prefix, or a user-facing message when not exactly one matches."""
    matches = state.manager.find_by_prefix(prefix)
    if not matches:
        return f"No task with id {prefix!r}."
    if len(matches) > 1:
        return f"Id {prefix!r} is ambiguous ({len(matches)} tasks). Use more characters."
    return matches[0]


def _month_arg(args: list[str]) -> str:
    if args:
        parse_year_month(args[0])
        return args[0]
    return format_month_year(datetime.now().astimezone().date())


def _failure(state: AppState, fallback: str) -> str:
    return state.manager.error_message or fallback


# ---- handlers ----


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, args: list[str]) -> str:
    m = state.manager
    user = m.user_id or "(not signed in)"
    err = m.error_message or "none"
    return (
        "Status:\n"
        f"  Store: {m.backend.name}\n"
        f"  User: {user}\n"
        f"  Loaded: {'yes' if m.is_loaded else 'no'}\n"
        f"  Tasks: {len(m.tasks)}\n"
        f"  Last error: {err}"
    )


def parse_add_args(args: list[str], *, default_date: str) -> TaskFormData:
    """
    /add [YYYY-MM-DD] words... [!priority] [#tag ...] [-- notes...]
    """
    words = list(args)
    notes: str | None = None
    if "--" in words:
        cut = words.index("--")
        notes = " ".join(words[cut + 1 :]) or None
        words = words[:cut]

    date = default_date
    if words and _DATE_LIKE.fullmatch(words[0]):
        date = words.pop(0)

    priority: str | None = None
    tags: list[str] = []
    title_words: list[str] = []
    for w in words:
        if w.startswith("!") and len(w) > 1:
            priority = w[1:]
        elif w.startswith("#") and len(w) > 1:
            tags.append(w[1:])
        else:
            title_words.append(w)

    return TaskFormData(
        title=" ".join(title_words),
        date=date,
        notes=notes,
        priority=priority,
        tags=tuple(tags),
    )


async def cmd_add(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /add [YYYY-MM-DD] title words [!low|!medium|!high] [#tag ...] [-- notes]"

    form = parse_add_args(args, default_date=today())
    problems = validate_form(form)
    if problems:
        return "Cannot add task:\n" + "\n".join(f"  - {p}" for p in problems)

    try:
        result = await state.manager.add(form)
    except NotAuthenticatedError as e:
        return str(e)

    if not result.ok or result.task is None:
        return _failure(state, "Failed to add task.")
    return f"Added {_short(result.task)} for {format_display_date(result.task.date)}: {result.task.title}"


async def cmd_list(state: AppState, args: list[str]) -> str:
    day = today()
    if args:
        if args[0].lower() != "today":
            try:
                parse_date(args[0])
            except ValueError:
                return "Usage: /list [YYYY-MM-DD|today]"
            day = args[0]

    tasks = state.manager.by_date(day)
    header = f"{format_display_date(day)} ({day})"
    if not tasks:
        return f"{header}: no tasks."

    done = sum(1 for t in tasks if t.completed)
    lines = [f"{header}: {done} of {len(tasks)} tasks completed"]
    lines.extend(_format_group(tasks))
    return "\n".join(lines)


async def cmd_month(state: AppState, args: list[str]) -> str:
    try:
        month = _month_arg(args)
    except ValueError:
        return "Usage: /month [YYYY-MM]"

    tasks = sorted(state.manager.by_month(month), key=lambda t: t.date)
    if not tasks:
        return f"{format_month_display(month)}: no tasks."

    lines = [f"{format_month_display(month)}:"]
    current = None
    for t in tasks:
        if t.date != current:
            current = t.date
            lines.append(f"  {t.date}")
        lines.append(f"    {format_task(t)}")
    return "\n".join(lines)


async def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <id>"
    task = _resolve(state, args[0])
    if isinstance(task, str):
        return task

    result = await state.manager.toggle(task.id)
    if not result.ok or result.task is None:
        return _failure(state, "Failed to update task.")
    state_word = "completed" if result.task.completed else "reopened"
    return f"Task {_short(task)} {state_word}."


async def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <id> title <words...>
    /edit <id> date YYYY-MM-DD
    /edit <id> notes <words...>   (no words clears notes)
    /edit <id> priority low|medium|high|none
    /edit <id> tags a,b,c         (no value clears tags)
    """
    if len(args) < 2:
        return "Usage: /edit <id> title|date|notes|priority|tags <value>"

    task = _resolve(state, args[0])
    if isinstance(task, str):
        return task

    field_name = args[1].lower()
    value = " ".join(args[2:]).strip()

    if field_name == "title":
        if not value:
            return "Title is required."
        changes = {"title": value}
    elif field_name == "date":
        try:
            parse_date(value)
        except ValueError:
            return "Date must be YYYY-MM-DD."
        changes = {"date": value}
    elif field_name == "notes":
        changes = {"notes": value or None}
    elif field_name == "priority":
        if value.lower() in ("", "none"):
            changes = {"priority": None}
        elif Priority.parse(value) is None:
            return "Priority must be low, medium, high or none."
        else:
            changes = {"priority": value}
    elif field_name == "tags":
        changes = {"tags": [t.strip() for t in value.split(",") if t.strip()]}
    else:
        return f"Unknown field: {field_name}. Use title, date, notes, priority or tags."

    form = TaskFormData(
        title=changes.get("title", task.title),
        date=changes.get("date", task.date),
        notes=changes.get("notes", task.notes),
    )
    problems = validate_form(form)
    if problems:
        return "Cannot update task:\n" + "\n".join(f"  - {p}" for p in problems)

    result = await state.manager.update(task.id, changes)
    if not result.ok:
        return _failure(state, "Failed to update task.")
    return f"Task {_short(task)} updated."


async def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <id>"
    task = _resolve(state, args[0])
    if isinstance(task, str):
        return task

    result = await state.manager.delete(task.id)
    if not result.ok:
        return _failure(state, "Failed to delete task.")
    return f"Deleted {_short(task)}: {task.title}"


async def cmd_report(state: AppState, args: list[str]) -> str:
    """
    /report [YYYY-MM] [completion=all|completed|incomplete] [priority=...] [tag=...]
    """
    month_args = [a for a in args if "=" not in a]
    opts = dict(a.split("=", 1) for a in args if "=" in a)

    try:
        month = _month_arg(month_args)
    except ValueError:
        return "Usage: /report [YYYY-MM] [completion=...] [priority=...] [tag=...]"

    report = monthly_report(state.manager.tasks, month)
    s = report.stats
    grade = completion_grade(s.completion_percentage)

    lines = [
        f"Report for {format_month_display(month)}:",
        f"  Total: {s.total}  Completed: {s.completed}  Incomplete: {s.incomplete}",
        f"  Completion: {s.completion_percentage}% ({grade.grade})",
        f"  Current streak: {current_streak(report.daily_breakdown)} day(s)",
    ]

    if report.daily_breakdown:
        lines.append("  Daily breakdown:")
        for day in report.daily_breakdown:
            lines.append(
                f"    {day.date}  {day.completed}/{day.total}  {day.completion_percentage}%"
            )

    tags = available_tags(state.manager.tasks, month)
    if tags:
        lines.append("  Tags: " + ", ".join(tags))

    if opts:
        month_tasks = [t for t in state.manager.tasks if t.date.startswith(month)]
        try:
            filtered = filter_tasks(
                month_tasks,
                priority=opts.get("priority"),
                completion=opts.get("completion", "all"),
                tag=opts.get("tag"),
            )
        except ValueError as e:
            return str(e)
        lines.append(f"  Matching tasks ({len(filtered)}):")
        lines.extend(f"    {t.date} {format_task(t)}" for t in filtered)
    elif report.incomplete_tasks:
        lines.append(f"  Incomplete tasks ({len(report.incomplete_tasks)}):")
        lines.extend(f"    {t.date} {format_task(t)}" for t in report.incomplete_tasks)

    return "\n".join(lines)


async def cmd_cal(state: AppState, args: list[str]) -> str:
    try:
        month = _month_arg(args)
    except ValueError:
        return "Usage: /cal [YYYY-MM]"

    counts = calendar_counts(state.manager.tasks, month)
    if not counts:
        return f"{format_month_display(month)}: no tasks."

    lines = [f"{format_month_display(month)}:"]
    for day, c in counts.items():
        mark = " *" if c.total and c.completed == c.total else ""
        lines.append(f"  {day}  {c.completed}/{c.total}{mark}")
    return "\n".join(lines)


async def cmd_login(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /login <user_id>"
    before = state.manager.error
    await state.manager.set_identity(args[0])
    error = state.manager.error
    if error is not None and error is not before:
        return error.message
    return f"Signed in as {args[0]} ({len(state.manager.tasks)} tasks)."


async def cmd_logout(state: AppState, args: list[str]) -> str:
    await state.manager.set_identity(None)
    return "Signed out."


async def cmd_error(state: AppState, args: list[str]) -> str:
    return state.manager.error_message or "No errors."


async def cmd_dismiss(state: AppState, args: list[str]) -> str:
    state.manager.clear_error()
    return "Error dismissed."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show store, user and task count.")
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: /add [YYYY-MM-DD] title [!high] [#tag] [-- notes].",
)
registry.register("list", cmd_list, help_text="Tasks for a day: /list [YYYY-MM-DD|today].", aliases=["ls"])
registry.register("month", cmd_month, help_text="Tasks for a month: /month [YYYY-MM].")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.", aliases=["toggle"])
registry.register("edit", cmd_edit, help_text="Edit a field: /edit <id> title|date|notes|priority|tags <value>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["delete"])
registry.register("report", cmd_report, help_text="Monthly report: /report [YYYY-MM] [completion=..] [priority=..] [tag=..].")
registry.register("cal", cmd_cal, help_text="Per-day counts for a month: /cal [YYYY-MM].")
registry.register("login", cmd_login, help_text="Sign in as a user id (remote store).")
registry.register("logout", cmd_logout, help_text="Sign out.")
registry.register("error", cmd_error, help_text="Show the last sync error.")
registry.register("dismiss", cmd_dismiss, help_text="Clear the last sync error.")

# src/cockpit_central/cli/commands.py

from __future__ import annotations

import logging
import shlex
from collections.abc import Awaitable, Callable
from typing import Any

from ..core.errors import ConfigurationError
from ..core.state import AppState
from ..tasks.normalize import normalize_pole, normalize_priority, normalize_status
from ..tasks.task_models import LogicalField, Task, new_task, parse_due_input
from ..tasks.task_store import TaskStore
from ..tasks.task_views import kpi_for_pole, label_for, top_tasks_for_pole

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]

logger = logging.getLogger(__name__)

# /add and /set option names -> logical field
_OPTION_FIELDS: dict[str, LogicalField] = {
    "title": LogicalField.TITLE,
    "pole": LogicalField.POLE,
    "status": LogicalField.STATUS,
    "statut": LogicalField.STATUS,
    "prio": LogicalField.PRIORITY,
    "priority": LogicalField.PRIORITY,
    "due": LogicalField.DUE_DATE,
    "duedate": LogicalField.DUE_DATE,
    "notes": LogicalField.NOTES,
    "link": LogicalField.LINK_URL,
    "linkurl": LogicalField.LINK_URL,
    "order": LogicalField.SORT_ORDER,
    "sortorder": LogicalField.SORT_ORDER,
}


class CommandRegistry:
    """Slash-command registry used by the console (/help, /load, /add, ...)."""

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

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Quoted arguments keep their spaces: /add BCS "Finaliser le rapport".
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as e:
            return f"Cannot parse command: {e}"
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _store(state: AppState) -> TaskStore:
    if state.task_store is None:
        raise ConfigurationError(state.missing_settings)
    return state.task_store


def split_options(args: list[str]) -> tuple[list[str], dict[LogicalField, str]]:
    """Separate "key=value" options (known keys only) from positional words."""
    words: list[str] = []
    opts: dict[LogicalField, str] = {}
    for a in args:
        key, sep, value = a.partition("=")
        lf = _OPTION_FIELDS.get(key.strip().lower()) if sep else None
        if lf is None:
            words.append(a)
        else:
            opts[lf] = value.strip()
    return words, opts


def format_task(state: AppState, t: Task) -> str:
    settings: Any = state.settings
    status = label_for(getattr(settings, "statuses", []), t.status)
    due = f" due {t.due_date[:10]}" if t.due_date else ""
    link = f" <{t.link_url}>" if t.link_url else ""
    return f"[{t.id}] {t.pole or '-'} | {status} | {t.priority} | {t.title}{due}{link}"


async def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if state.needs_configuration:
        return "Status: needs configuration (missing: " + ", ".join(state.missing_settings) + ")"

    store = _store(state)
    if store.schema is None:
        schema = "not discovered yet"
    elif store.schema_degraded:
        schema = "unavailable (optional columns ignored)"
    else:
        schema = f"{len(store.schema)} columns"
    return (
        "Status:\n"
        f"  Schema: {schema}\n"
        f"  Tasks loaded: {len(store.tasks)}"
    )


async def cmd_load(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    tasks = await _store(state).load_tasks()
    return f"Loaded {len(tasks)} tasks."


async def cmd_list(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /list         -> all loaded tasks
    /list <pole>  -> tasks of one pole
    """
    store = _store(state)
    tasks = store.tasks
    if args:
        pole = normalize_pole(args[0])
        tasks = [t for t in tasks if t.pole == pole]
    if not tasks:
        return "No tasks. Use /load first."
    return "\n".join(format_task(state, t) for t in tasks)


async def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/add <pole> <title words...> [status=..] [prio=..] [due=20250612] [notes=".."] [link=..]"""
    usage = "Usage: /add <pole> <title> [status=..] [prio=..] [due=YYYYMMDD] [notes=..] [link=..]"
    words, opts = split_options(args)

    pole_raw = opts.get(LogicalField.POLE)
    if pole_raw is None:
        if not words:
            return usage
        pole_raw, words = words[0], words[1:]

    title = opts.get(LogicalField.TITLE) or " ".join(words)
    if not title.strip():
        return usage
    pole = normalize_pole(pole_raw)

    task = new_task(
        title=title,
        pole=pole,
        status=normalize_status(opts.get(LogicalField.STATUS)),
        priority=normalize_priority(opts.get(LogicalField.PRIORITY)),
        due=opts.get(LogicalField.DUE_DATE),
        notes=opts.get(LogicalField.NOTES, ""),
        link_url=opts.get(LogicalField.LINK_URL, ""),
    )
    created = await _store(state).create_task(task)
    return "Created " + format_task(state, created)


async def cmd_set(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/set <id> status=EnCours due=20250612 ..."""
    words, opts = split_options(args)
    if len(words) != 1 or not opts:
        return "Usage: /set <id> field=value [field=value ...]"

    partial: dict[str, Any] = {}
    for lf, value in opts.items():
        if lf is LogicalField.STATUS:
            partial[lf.value] = normalize_status(value)
        elif lf is LogicalField.POLE:
            partial[lf.value] = normalize_pole(value)
        elif lf is LogicalField.PRIORITY:
            partial[lf.value] = normalize_priority(value)
        elif lf is LogicalField.DUE_DATE:
            # "due=" clears the date (null on the wire).
            partial[lf.value] = parse_due_input(value) or None
        elif lf is LogicalField.SORT_ORDER:
            partial[lf.value] = float(value)
        else:
            partial[lf.value] = value

    item_id = words[0]
    refreshed = await _store(state).update_task_fields(item_id, partial)
    if refreshed is not None:
        return "Updated " + format_task(state, refreshed)
    return f"Update sent for {item_id}."


async def cmd_rm(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) != 1:
        return "Usage: /rm <id>"
    store = _store(state)
    known = store.get_task(args[0])
    await store.delete_task(args[0])
    if known is not None:
        return f"Deleted [{known.id}] {known.title}."
    return f"Deleted {args[0]}."


async def cmd_kpi(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/kpi [pole] -> counters and top open tasks per pole"""
    settings: Any = state.settings
    poles = getattr(settings, "poles", [])
    keys = [normalize_pole(args[0])] if args else [p["key"] for p in poles]
    tasks = _store(state).tasks

    lines: list[str] = []
    for key in keys:
        k = kpi_for_pole(tasks, key)
        lines.append(
            f"{label_for(poles, key)}: {k.total} total, {k.open} open, "
            f"{k.in_progress} in progress, {k.due_soon} due within 7 days"
        )
        for t in top_tasks_for_pole(tasks, key):
            lines.append("    " + format_task(state, t))
    return "\n".join(lines) if lines else "No poles configured."


async def cmd_schema(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    store = _store(state)
    await store.ensure_schema()
    lines = ["Field resolution:"]
    for name, key in store.resolution.describe().items():
        lines.append(f"  {name:<10} -> {key or '(absent)'}")
    if store.schema_degraded:
        lines.append("  (column discovery failed; optional fields are ignored)")
    return "\n".join(lines)


async def cmd_reset(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    logger.debug("Session reset requested")
    state.reset_session()
    return "Session reset: schema, tasks and token will be fetched again."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show configuration/schema/task counts.")
registry.register("load", cmd_load, help_text="Fetch tasks from the list.", aliases=["refresh"])
registry.register("list", cmd_list, help_text="List loaded tasks: /list [pole].", aliases=["ls"])
registry.register("add", cmd_add, help_text="Create a task: /add <pole> <title> [status=..] [prio=..] [due=..].")
registry.register("set", cmd_set, help_text="Update fields: /set <id> status=EnCours due=20250612.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["del"])
registry.register("kpi", cmd_kpi, help_text="Per-pole counters and top tasks: /kpi [pole].")
registry.register("schema", cmd_schema, help_text="Show how logical fields map to list columns.")
registry.register("reset", cmd_reset, help_text="Forget schema, tasks and cached token.")

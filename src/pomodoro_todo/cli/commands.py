# src/pomodoro_todo/cli/commands.py

from __future__ import annotations

import contextlib
import logging
import shlex
from collections.abc import Callable
from pathlib import Path

from ..config import IMPORT_MODES, SUPPORTED_LANGUAGES
from ..core.errors import InvalidTaskText, TaskNotFound
from ..core.state import AppState
from ..tasks.calendar_import import extract_today_tasks
from ..tasks.task_models import BREAK_DURATION, WORK_DURATION, Phase, Task, format_time
from ..tasks.timer_engine import ImportMode
from .messages import t

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /start, ...)."""

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

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            # Unbalanced quotes: fall back to plain whitespace splitting.
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /exit - Quit.")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def resolve_task(state: AppState, ref: str) -> Task:
    """
    Resolve a user reference to a task.

    Accepts a 1-based position in the current list or a unique id prefix.
    Raises TaskNotFound otherwise.
    """
    ref = (ref or "").strip()
    tasks = state.collection.tasks()

    if ref.isdigit():
        idx = int(ref) - 1
        if 0 <= idx < len(tasks):
            return tasks[idx]

    if ref:
        matches = [task for task in tasks if task.id.startswith(ref)]
        if len(matches) == 1:
            return matches[0]

    raise TaskNotFound(ref)


def _phase_label(lang: str, phase: Phase) -> str:
    return t(lang, "phase_break" if phase == Phase.BREAK else "phase_work")


def format_task_line(lang: str, index: int, task: Task) -> str:
    mark = "x" if task.completed else " "
    running = " >" if task.is_running else ""
    return (
        f"{index:>3}. [{mark}] {task.text}  "
        f"({task.completed_pomodoros}/{task.estimated_pomodoros})  "
        f"{_phase_label(lang, task.current_phase)} {format_time(task.remaining_time)}{running}"
    )


def render_task_list(state: AppState) -> str:
    lang = state.language
    tasks = state.collection.tasks()
    if not tasks:
        return t(lang, "empty_list")

    remaining, completed, total = state.collection.counts()
    pomodoros = sum(task.completed_pomodoros for task in tasks)
    percent = round(completed * 100 / total)
    lines = [
        t(
            lang,
            "header",
            remaining=remaining,
            completed=completed,
            total=total,
            percent=percent,
            pomodoros=pomodoros,
        )
    ]
    lines.extend(format_task_line(lang, i, task) for i, task in enumerate(tasks, start=1))
    return "\n".join(lines)


def add_task(state: AppState, text: str) -> str:
    try:
        task = state.collection.add(text)
    except InvalidTaskText:
        return t(state.language, "empty_text")
    return t(state.language, "added", text=task.text)


def _with_celebration(state: AppState, reply: str) -> str:
    if state.collection.all_completed():
        reply += "\n" + t(state.language, "celebrate")
    return reply


def _with_task(
    state: AppState,
    args: list[str],
    usage: str,
    action: Callable[[Task], str],
) -> str:
    if not args:
        return t(state.language, "usage", usage=usage)
    try:
        task = resolve_task(state, args[0])
    except TaskNotFound as e:
        return t(state.language, "no_such_task", ref=e.task_id)
    return action(task)


# ---- commands ----


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return render_task_list(state)


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return add_task(state, " ".join(args))


def cmd_delete(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    def action(task: Task) -> str:
        state.collection.delete(task.id)
        return _with_celebration(state, t(state.language, "deleted", text=task.text))

    return _with_task(state, args, "/del <n>", action)


def cmd_done(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /done <n> -> toggle completion (stops the timer when completing)
    """

    def action(task: Task) -> str:
        updated = state.collection.toggle_complete(task.id)
        if updated is None:
            return t(state.language, "no_such_task", ref=task.id)
        if not updated.completed:
            return t(state.language, "reopened", text=updated.text)
        return _with_celebration(state, t(state.language, "completed", text=updated.text))

    return _with_task(state, args, "/done <n>", action)


def cmd_estimate(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /est <n> +1  -> one more pomodoro
    /est <n> -1  -> one less (never below 1)
    """
    usage = "/est <n> <+k|-k>"
    if len(args) < 2:
        return t(state.language, "usage", usage=usage)
    try:
        delta = int(args[1])
    except ValueError:
        return t(state.language, "usage", usage=usage)

    def action(task: Task) -> str:
        if task.completed:
            return t(state.language, "is_completed", text=task.text)
        updated = state.collection.adjust_estimate(task.id, delta)
        n = updated.estimated_pomodoros if updated else task.estimated_pomodoros
        return t(state.language, "estimate", text=task.text, n=n)

    return _with_task(state, args, usage, action)


def cmd_start(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    def action(task: Task) -> str:
        if task.completed:
            return t(state.language, "is_completed", text=task.text)
        if task.is_running:
            return t(state.language, "already_running", text=task.text)
        updated = state.collection.start(task.id) or task
        return t(
            state.language,
            "started",
            text=updated.text,
            phase=_phase_label(state.language, updated.current_phase),
            time=format_time(updated.remaining_time),
        )

    return _with_task(state, args, "/start <n>", action)


def cmd_pause(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    def action(task: Task) -> str:
        if not task.is_running:
            return t(state.language, "not_running", text=task.text)
        updated = state.collection.pause(task.id) or task
        return t(state.language, "paused", text=updated.text, time=format_time(updated.remaining_time))

    return _with_task(state, args, "/pause <n>", action)


def cmd_reset(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    def action(task: Task) -> str:
        if task.completed:
            return t(state.language, "is_completed", text=task.text)
        updated = state.collection.reset(task.id) or task
        return t(state.language, "reset", text=updated.text, time=format_time(updated.remaining_time))

    return _with_task(state, args, "/reset <n>", action)


def cmd_import(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /import <file.ics>          -> add today's VTODOs (mode from settings)
    /import <file.ics> replace  -> replace the whole list with them
    """
    if not args:
        return t(state.language, "usage", usage="/import <file.ics> [merge|replace]")

    path = Path(args[0]).expanduser()
    default_mode = ImportMode.parse(getattr(state.settings, "import_mode", None))
    mode = ImportMode.parse(args[1] if len(args) > 1 else None, default=default_mode)

    if emit:
        with contextlib.suppress(Exception):
            emit(f"[IMPORT] Reading {path} ({mode.value})...")

    try:
        content = path.read_text("utf-8", errors="replace")
    except OSError as e:
        logger.warning("Import read failed path=%s: %s", path, e)
        return t(state.language, "import_failed", path=path, error=e.strerror or e)

    tasks = extract_today_tasks(content)
    if not tasks:
        return t(state.language, "import_none", path=path)

    imported = state.collection.import_tasks(tasks, mode)
    return _with_celebration(state, t(state.language, "import_done", n=len(imported), mode=mode.value))


def cmd_lang(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /lang     -> show current language
    /lang ja  -> switch (and remember) the language
    """
    if not args:
        return t(state.language, "language", lang=state.language)

    tag = args[0].strip().lower()
    if tag not in SUPPORTED_LANGUAGES:
        return t(state.language, "language_unknown", lang=tag, available=", ".join(SUPPORTED_LANGUAGES))

    state.language = tag
    state.store.save_locale(tag)
    return t(tag, "language", lang=tag)


def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    running = state.collection.running_task()
    running_str = (
        f"{running.text} ({format_time(running.remaining_time)})" if running else t(state.language, "none")
    )
    return t(
        state.language,
        "status",
        store=getattr(state.settings, "store_path", "-"),
        lang=state.language,
        mode=getattr(state.settings, "import_mode", "merge"),
        running=running_str,
    )


def cmd_about(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return t(
        state.language,
        "about",
        app=getattr(state.settings, "app_name", "pomodoro-todo"),
        work=format_time(WORK_DURATION),
        brk=format_time(BREAK_DURATION),
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show tasks with timers.", aliases=["ls", "l"])
registry.register("add", cmd_add, help_text="Add a task: /add <text> (plain text works too).", aliases=["a"])
registry.register("del", cmd_delete, help_text="Delete a task: /del <n>.", aliases=["rm", "delete"])
registry.register("done", cmd_done, help_text="Toggle completion: /done <n>.", aliases=["x"])
registry.register("est", cmd_estimate, help_text="Adjust estimate: /est <n> +1 | -1.")
registry.register("start", cmd_start, help_text="Start a task's timer: /start <n>.", aliases=["s"])
registry.register("pause", cmd_pause, help_text="Pause a task's timer: /pause <n>.", aliases=["p"])
registry.register("reset", cmd_reset, help_text="Reset a task to a fresh work phase: /reset <n>.", aliases=["r"])
registry.register(
    "import",
    cmd_import,
    help_text=f"Import today's VTODOs from an .ics file: /import <path> [{'|'.join(IMPORT_MODES)}].",
)
registry.register("lang", cmd_lang, help_text=f"Language: /lang [{'|'.join(SUPPORTED_LANGUAGES)}].")
registry.register("status", cmd_status, help_text="Show store/language/running timer.")
registry.register("about", cmd_about, help_text="About this app.")

# src/pomodoro_todo/connectors/console_connector.py

from __future__ import annotations

import contextlib
import logging
import sys
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import add_task, render_task_list
from ..cli.commands import registry as command_registry
from ..cli.messages import t
from ..core.state import AppState
from ..tasks.task_models import Phase, Task

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleNotifier:
    """
    PhaseNotifier for the terminal: timestamped line + optional bell.

    Called from the ticker thread; output failures are ignored.
    """

    def __init__(self, *, bell: bool = True, language: Callable[[], str] | None = None) -> None:
        self._bell = bell
        self._language = language or (lambda: "en")

    def phase_complete(self, task: Task, finished_phase: Phase) -> None:
        lang = self._language()
        if finished_phase == Phase.WORK:
            text = t(
                lang,
                "work_done",
                text=task.text,
                done=task.completed_pomodoros,
                est=task.estimated_pomodoros,
            )
        else:
            text = t(lang, "break_done", text=task.text)

        with contextlib.suppress(Exception):
            if self._bell and sys.stdout.isatty():
                sys.stdout.write("\a")
            _print_ts(f"[TIMER] {text}")


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (tasks=%d).", len(state.collection))
    _print_ts("[CONSOLE] Type a task to add it. Use /help for commands. Use /exit to quit.\n")
    print(render_task_list(state), flush=True)

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = command_registry.handle(state, user_input, emit=emit)
            if reply is None:
                reply = add_task(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        _print_ts(reply)

    logger.info("Console connector finished.")

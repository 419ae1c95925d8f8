# src/pomodoro_todo/core/state.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..tasks.timer_engine import TaskCollection
from .ports import PhaseNotifier, TaskRepo


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules.
    settings: object

    collection: TaskCollection
    store: TaskRepo
    notifier: PhaseNotifier | None = None
    # Persistence listener: (version, records) -> None.
    saver: Callable[[int, list[dict[str, Any]]], None] | None = None

    language: str = "en"

# src/pomodoro_todo/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

WORK_DURATION = 25 * 60
BREAK_DURATION = 5 * 60


class Phase(StrEnum):
    """Pomodoro phase of a single task."""

    WORK = "work"
    BREAK = "break"

    @classmethod
    def from_db(cls, raw: str | None) -> Phase:
        if not raw:
            return cls.WORK
        try:
            return cls(raw)
        except ValueError:
            return cls.WORK


def phase_duration(phase: Phase) -> int:
    return BREAK_DURATION if phase == Phase.BREAK else WORK_DURATION


@dataclass(slots=True)
class Task:
    id: str
    text: str
    completed: bool = False

    estimated_pomodoros: int = 1
    completed_pomodoros: int = 0

    current_phase: Phase = Phase.WORK
    remaining_time: int = WORK_DURATION

    # Transient: derived from TaskCollection.running_id, never persisted.
    is_running: bool = False


def new_task_id() -> str:
    return uuid.uuid4().hex


def new_task(text: str, *, estimated_pomodoros: int = 1) -> Task:
    """
    Build a fresh task in its initial state (idle, work phase, full countdown).

    Shared by TaskCollection.add and the calendar import so both produce
    the same shape.
    """
    return Task(
        id=new_task_id(),
        text=text,
        completed=False,
        estimated_pomodoros=max(1, int(estimated_pomodoros)),
        completed_pomodoros=0,
        current_phase=Phase.WORK,
        remaining_time=WORK_DURATION,
        is_running=False,
    )


def task_to_record(task: Task) -> dict[str, Any]:
    """Persisted (camelCase) shape. isRunning is deliberately absent."""
    return {
        "id": task.id,
        "text": task.text,
        "completed": task.completed,
        "estimatedPomodoros": task.estimated_pomodoros,
        "completedPomodoros": task.completed_pomodoros,
        "currentPhase": task.current_phase.value,
        "remainingTime": task.remaining_time,
    }


def _as_int(raw: Any, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def task_from_record(raw: dict[str, Any]) -> Task | None:
    """
    Rebuild a Task from a stored record.

    - missing currentPhase -> work, missing/zero remainingTime -> full work duration
    - remainingTime is clamped into the phase bounds
    - isRunning is always False, whatever was stored
    Returns None for records without usable text.
    """
    text = str(raw.get("text") or "").strip()
    if not text:
        return None

    raw_id = raw.get("id")
    task_id = str(raw_id) if raw_id not in (None, "") else new_task_id()

    phase = Phase.from_db(raw.get("currentPhase"))
    remaining = _as_int(raw.get("remainingTime"), 0) or WORK_DURATION
    remaining = max(0, min(phase_duration(phase), remaining))

    return Task(
        id=task_id,
        text=text,
        completed=bool(raw.get("completed", False)),
        estimated_pomodoros=max(1, _as_int(raw.get("estimatedPomodoros"), 1)),
        completed_pomodoros=max(0, _as_int(raw.get("completedPomodoros"), 0)),
        current_phase=phase,
        remaining_time=remaining,
        is_running=False,
    )


def format_time(seconds: int) -> str:
    """Render a countdown as mm:ss (e.g. 330 -> "05:30")."""
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins:02d}:{secs:02d}"

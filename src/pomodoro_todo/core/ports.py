# src/pomodoro_todo/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The engine depends on Protocols instead of concrete implementations.
This keeps storage/notification swappable and makes testing easier.
"""

from typing import Any, Protocol

from ..tasks.task_models import Phase, Task

TaskRecord = dict[str, Any]
# Persisted task shape: {"id": ..., "text": ..., "remainingTime": ..., ...}.


class PhaseNotifier(Protocol):
    """
    Fire-and-forget "phase complete" signal.

    Called once per natural expiry with a snapshot of the task (already in its
    next phase) and the phase that just finished. Failures are ignored by the caller.
    """

    def phase_complete(self, task: Task, finished_phase: Phase) -> None: ...


class TaskRepo(Protocol):
    """Key-value persistence for the task list and the UI locale tag."""

    def load_tasks(self) -> list[TaskRecord]: ...
    def save_tasks(self, records: list[TaskRecord]) -> None: ...
    def load_locale(self) -> str | None: ...
    def save_locale(self, tag: str) -> None: ...

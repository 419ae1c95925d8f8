# src/pomodoro_todo/core/errors.py

from __future__ import annotations


class InvalidTaskText(ValueError):
    """Raised when a task would be created with an empty (whitespace-only) label."""


class TaskNotFound(KeyError):
    """
    Raised by strict lookups (TaskCollection.require) for an unknown task id.

    Engine operations themselves treat unknown ids as a no-op.
    """

    def __init__(self, task_id: str) -> None:
        super().__init__(task_id)
        self.task_id = task_id

    def __str__(self) -> str:
        return f"Task not found: {self.task_id}"

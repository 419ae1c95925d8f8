# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field

from pomodoro_todo.tasks.task_models import Phase, Task


@dataclass(slots=True)
class PhaseEvent:
    task: Task
    finished_phase: Phase


@dataclass(slots=True)
class FakeNotifier:
    """
    PhaseNotifier that records every phase-complete event for assertions.
    """

    events: list[PhaseEvent] = field(default_factory=list)

    def phase_complete(self, task: Task, finished_phase: Phase) -> None:
        self.events.append(PhaseEvent(task=task, finished_phase=finished_phase))


class ExplodingNotifier:
    """Notifier whose delivery always fails (the engine must not care)."""

    def __init__(self) -> None:
        self.calls = 0

    def phase_complete(self, task: Task, finished_phase: Phase) -> None:
        self.calls += 1
        raise RuntimeError("speaker unplugged")

# src/pomodoro_todo/tasks/timer_engine.py

from __future__ import annotations

"""
Task timer engine.

TaskCollection owns every Task and the single `running_id` slot:
- each task advances through work -> break -> work on its own countdown,
- at most one task runs at a time (starting one stops the other),
- natural expiry of a work phase counts a completed pomodoro.

Ticks are delivered from outside (tick_driver.py or tests); the engine only
implements the state transition for one elapsed second.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import replace
from enum import StrEnum
from typing import Any

from ..core.errors import InvalidTaskText, TaskNotFound
from ..core.ports import PhaseNotifier
from .task_models import (
    BREAK_DURATION,
    WORK_DURATION,
    Phase,
    Task,
    new_task,
    new_task_id,
    task_from_record,
    task_to_record,
)

logger = logging.getLogger(__name__)

TaskRecords = list[dict[str, Any]]
# (version, records) captured under the lock at the moment of the change.
ChangeListener = Callable[[int, TaskRecords], None]


class ImportMode(StrEnum):
    MERGE = "merge"
    REPLACE = "replace"

    @classmethod
    def parse(cls, raw: str | None, default: ImportMode | None = None) -> ImportMode:
        fallback = default or cls.MERGE
        if not raw:
            return fallback
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return fallback


class TaskCollection:
    """
    Ordered task list (most recent first) plus the single running slot.

    Thread-safety:
    - all reads and writes go through one RLock, so a tick is never observed mid-mutation
    - every accessor returns copies; callers never alias the stored Task objects
    """

    def __init__(
        self,
        tasks: Iterable[Task] | None = None,
        *,
        notifier: PhaseNotifier | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._tasks: list[Task] = []
        self._running_id: str | None = None
        self._version = 0
        self._notifier = notifier
        self._listeners: list[ChangeListener] = []

        for t in tasks or []:
            self._tasks.append(replace(t, is_running=False))

    @classmethod
    def from_records(
        cls,
        records: Iterable[dict[str, Any]],
        *,
        notifier: PhaseNotifier | None = None,
    ) -> TaskCollection:
        """Rebuild a collection from persisted records (nothing is running after load)."""
        tasks: list[Task] = []
        seen: set[str] = set()
        skipped = 0
        for raw in records:
            task = task_from_record(raw) if isinstance(raw, dict) else None
            if task is None:
                skipped += 1
                continue
            if task.id in seen:
                task.id = new_task_id()
            seen.add(task.id)
            tasks.append(task)
        if skipped:
            logger.warning("Skipped %d unusable task records on load", skipped)
        return cls(tasks, notifier=notifier)

    # ---- hooks ----

    def set_notifier(self, notifier: PhaseNotifier | None) -> None:
        self._notifier = notifier

    def add_listener(self, listener: ChangeListener) -> None:
        """
        Register a callback invoked after every state change.

        Listeners run outside the lock and may run concurrently (console + ticker
        threads); the version lets them drop a snapshot older than one already handled.
        """
        self._listeners.append(listener)

    def _changed(self) -> tuple[int, TaskRecords] | None:
        # Lock must be held.
        self._version += 1
        if not self._listeners:
            return None
        return self._version, [task_to_record(t) for t in self._tasks]

    def _emit_change(self, change: tuple[int, TaskRecords] | None) -> None:
        if change is None:
            return
        version, records = change
        for listener in list(self._listeners):
            try:
                listener(version, records)
            except Exception:
                logger.exception("Task change listener failed")

    def _emit_phase_complete(self, snapshot: Task, finished: Phase) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.phase_complete(snapshot, finished)
        except Exception:
            logger.warning("Phase notification failed task_id=%s", snapshot.id, exc_info=True)

    # ---- low-level helpers (lock must be held) ----

    def _find(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def _snapshot(self, task: Task) -> Task:
        return replace(task, is_running=(task.id == self._running_id))

    def _stop(self, task: Task) -> bool:
        if self._running_id != task.id:
            return False
        self._running_id = None
        task.is_running = False
        return True

    # ---- queries ----

    @property
    def version(self) -> int:
        return self._version

    @property
    def running_id(self) -> str | None:
        return self._running_id

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def tasks(self) -> list[Task]:
        with self._lock:
            return [self._snapshot(t) for t in self._tasks]

    def get(self, task_id: str) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            return self._snapshot(task) if task else None

    def require(self, task_id: str) -> Task:
        task = self.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def running_task(self) -> Task | None:
        with self._lock:
            if self._running_id is None:
                return None
            task = self._find(self._running_id)
            return self._snapshot(task) if task else None

    def counts(self) -> tuple[int, int, int]:
        """(remaining, completed, total)"""
        with self._lock:
            done = sum(1 for t in self._tasks if t.completed)
            total = len(self._tasks)
            return total - done, done, total

    def all_completed(self) -> bool:
        remaining, _, total = self.counts()
        return total > 0 and remaining == 0

    def to_records(self) -> list[dict[str, Any]]:
        with self._lock:
            return [task_to_record(t) for t in self._tasks]

    def snapshot_records(self) -> tuple[int, TaskRecords]:
        with self._lock:
            return self._version, [task_to_record(t) for t in self._tasks]

    # ---- operations ----

    def add(self, text: str) -> Task:
        label = (text or "").strip()
        if not label:
            raise InvalidTaskText("task text is required")

        task = new_task(label)
        with self._lock:
            self._tasks.insert(0, task)
            change = self._changed()
            snap = self._snapshot(task)
        logger.debug("Task added id=%s", task.id)
        self._emit_change(change)
        return snap

    def delete(self, task_id: str) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                logger.debug("delete: unknown task_id=%s", task_id)
                return None
            self._stop(task)
            self._tasks.remove(task)
            change = self._changed()
            snap = replace(task, is_running=False)
        logger.debug("Task deleted id=%s", task_id)
        self._emit_change(change)
        return snap

    def toggle_complete(self, task_id: str) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                logger.debug("toggle_complete: unknown task_id=%s", task_id)
                return None
            if not task.completed:
                self._stop(task)
            task.completed = not task.completed
            change = self._changed()
            snap = self._snapshot(task)
        logger.debug("Task id=%s completed=%s", task_id, snap.completed)
        self._emit_change(change)
        return snap

    def adjust_estimate(self, task_id: str, delta: int) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                logger.debug("adjust_estimate: unknown task_id=%s", task_id)
                return None
            if task.completed:
                return self._snapshot(task)
            new_value = max(1, task.estimated_pomodoros + int(delta))
            if new_value == task.estimated_pomodoros:
                return self._snapshot(task)
            task.estimated_pomodoros = new_value
            change = self._changed()
            snap = self._snapshot(task)
        self._emit_change(change)
        return snap

    def start(self, task_id: str) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                logger.debug("start: unknown task_id=%s", task_id)
                return None
            if task.completed or self._running_id == task.id:
                return self._snapshot(task)

            if self._running_id is not None:
                previous = self._find(self._running_id)
                if previous is not None:
                    previous.is_running = False
                logger.debug("Stopped task id=%s in favour of id=%s", self._running_id, task_id)

            self._running_id = task.id
            task.is_running = True
            change = self._changed()
            snap = self._snapshot(task)
        logger.info(
            "Timer started id=%s phase=%s remaining=%s",
            task_id,
            snap.current_phase.value,
            snap.remaining_time,
        )
        self._emit_change(change)
        return snap

    def pause(self, task_id: str) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                logger.debug("pause: unknown task_id=%s", task_id)
                return None
            if not self._stop(task):
                return self._snapshot(task)
            change = self._changed()
            snap = self._snapshot(task)
        logger.info("Timer paused id=%s remaining=%s", task_id, snap.remaining_time)
        self._emit_change(change)
        return snap

    def reset(self, task_id: str) -> Task | None:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                logger.debug("reset: unknown task_id=%s", task_id)
                return None
            if task.completed:
                return self._snapshot(task)
            self._stop(task)
            task.current_phase = Phase.WORK
            task.remaining_time = WORK_DURATION
            change = self._changed()
            snap = self._snapshot(task)
        self._emit_change(change)
        return snap

    def tick(self, task_id: str) -> Task | None:
        """
        Advance the running task by one second.

        On reaching zero:
        - work  -> completed_pomodoros += 1, switch to break (BREAK_DURATION), stop, notify
        - break -> switch to work (WORK_DURATION), stop, notify
        Ticks for a task that is not running (or unknown) are ignored.
        """
        finished: Phase | None = None
        with self._lock:
            if task_id is None or self._running_id != task_id:
                return None
            task = self._find(task_id)
            if task is None:
                self._running_id = None
                return None

            task.remaining_time -= 1
            if task.remaining_time <= 0:
                finished = task.current_phase
                if finished == Phase.WORK:
                    task.completed_pomodoros += 1
                    task.current_phase = Phase.BREAK
                    task.remaining_time = BREAK_DURATION
                else:
                    task.current_phase = Phase.WORK
                    task.remaining_time = WORK_DURATION
                self._stop(task)
            change = self._changed()
            snap = self._snapshot(task)

        if finished is not None:
            logger.info(
                "Phase %s finished id=%s completed_pomodoros=%s",
                finished.value,
                task_id,
                snap.completed_pomodoros,
            )
            self._emit_phase_complete(snap, finished)
        self._emit_change(change)
        return snap

    def tick_running(self) -> Task | None:
        running = self._running_id
        if running is None:
            return None
        # tick() re-checks running_id under the lock.
        return self.tick(running)

    def import_tasks(self, tasks: Iterable[Task], mode: ImportMode = ImportMode.MERGE) -> list[Task]:
        """
        Insert imported task seeds.

        MERGE:   new tasks go in front of the existing ones (source order kept)
        REPLACE: the running timer is stopped and the list is swapped out
        Returns snapshots of the inserted tasks.
        """
        incoming = [replace(t, is_running=False) for t in tasks]
        with self._lock:
            if mode == ImportMode.REPLACE:
                self._running_id = None
                existing: list[Task] = []
            else:
                existing = self._tasks

            taken = {t.id for t in existing}
            for t in incoming:
                if t.id in taken:
                    t.id = new_task_id()
                taken.add(t.id)

            self._tasks = incoming + existing
            change = self._changed()
            out = [self._snapshot(t) for t in incoming]
        logger.info("Imported %d tasks mode=%s", len(out), mode.value)
        self._emit_change(change)
        return out

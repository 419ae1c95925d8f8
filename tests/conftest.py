# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from pomodoro_todo.cli.bootstrap import create_initial_state
from pomodoro_todo.core.state import AppState
from pomodoro_todo.tasks.task_store import TaskStore
from pomodoro_todo.tasks.timer_engine import TaskCollection

from .fakes import FakeNotifier


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="pomodoro-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        store_path=tmp_path / "data" / "store.json",
        language="en",
        import_mode="merge",
        tick_interval_seconds=0.01,
        notify_bell=False,
    )


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def collection(notifier: FakeNotifier) -> TaskCollection:
    return TaskCollection(notifier=notifier)


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.store_path)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    """
    AppState wired the same way as the CLI.

    NOTE: the real JSON TaskStore is used here because persistence on every
    change is part of what we want to test.
    """
    return create_initial_state(settings=settings, store=store)

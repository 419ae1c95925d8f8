# src/pomodoro_todo/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the store, the task collection and the notifier into AppState,
- keeps the store in sync with every collection change.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from ..config import SUPPORTED_LANGUAGES, get_settings
from ..connectors.console_connector import ConsoleNotifier
from ..core.ports import TaskRepo
from ..core.state import AppState
from ..tasks.task_store import TaskStore
from ..tasks.timer_engine import TaskCollection

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, store: TaskStore | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if store is None:
        store = TaskStore(settings.store_path)

    language = store.load_locale() or settings.language
    if language not in SUPPORTED_LANGUAGES:
        language = "en"

    state = AppState(
        settings=settings,
        collection=load_collection(store),
        store=store,
        language=language,
    )

    state.notifier = ConsoleNotifier(
        bell=bool(getattr(settings, "notify_bell", True)),
        language=lambda: state.language,
    )
    state.collection.set_notifier(state.notifier)
    state.saver = CollectionSaver(store)
    state.collection.add_listener(state.saver)
    return state


def load_collection(store: TaskStore) -> TaskCollection:
    try:
        records = store.load_tasks()
    except Exception:
        logger.exception("Failed to load tasks; starting with an empty list")
        records = []
    collection = TaskCollection.from_records(records)
    logger.info("Loaded %d tasks", len(collection))
    return collection


class CollectionSaver:
    """
    Change listener that writes task snapshots to the store in version order.

    Snapshots arrive from the console and ticker threads outside the engine lock,
    so an older one can show up after a newer one; those are dropped.
    """

    def __init__(self, store: TaskRepo) -> None:
        self._store = store
        self._lock = threading.Lock()
        self._saved_version = -1

    @property
    def saved_version(self) -> int:
        return self._saved_version

    def __call__(self, version: int, records: list[dict[str, Any]]) -> None:
        with self._lock:
            if version <= self._saved_version:
                logger.debug("Dropped stale snapshot v%s (saved v%s)", version, self._saved_version)
                return
            try:
                self._store.save_tasks(records)
            except Exception:
                logger.exception("Failed to save tasks v%s", version)
                return
            self._saved_version = version


def save_collection(state: AppState) -> None:
    version, records = state.collection.snapshot_records()
    if state.saver is not None:
        state.saver(version, records)
        return
    try:
        state.store.save_tasks(records)
    except Exception:
        logger.exception("Failed to save tasks")

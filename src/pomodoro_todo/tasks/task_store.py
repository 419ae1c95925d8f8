# src/pomodoro_todo/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TODOS_KEY = "todos"
LANGUAGE_KEY = "language"


class TaskStore:
    """
    JSON-file key-value store.

    Layout: {"todos": [<task record>, ...], "language": "en"}

    - reads are best-effort: a missing or broken file behaves like an empty store
    - writes go to a temp file first and are swapped in with os.replace
    - "isRunning" is stripped from every record before writing
    - writers (console thread, ticker thread) are serialized by one lock
    """

    def __init__(self, path: str | Path = "store.json") -> None:
        self._path = Path(path)
        self._write_lock = threading.Lock()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("TaskStore ready path=%s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    def close(self) -> None:
        """Compatibility hook for shutdown (no open handles)."""
        return

    # ---- low-level helpers ----

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except Exception:
            logger.exception("Failed to read store %s; starting empty", self._path)
            return {}
        if isinstance(data, list):
            # Early layout: a bare array of tasks.
            return {TODOS_KEY: data}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
            with contextlib.suppress(Exception):
                os.chmod(self._path, 0o600)
        except Exception:
            logger.exception("Failed to write store %s", self._path)

    # ---- public API ----

    def load_tasks(self) -> list[dict[str, Any]]:
        raw = self._read().get(TODOS_KEY)
        if not isinstance(raw, list):
            return []
        records = [r for r in raw if isinstance(r, dict)]
        logger.info("Loaded %d task records from %s", len(records), self._path)
        return records

    def save_tasks(self, records: list[dict[str, Any]]) -> None:
        with self._write_lock:
            data = self._read()
            data[TODOS_KEY] = [{k: v for k, v in r.items() if k != "isRunning"} for r in records]
            self._write(data)
        logger.debug("Saved %d task records to %s", len(records), self._path)

    def load_locale(self) -> str | None:
        tag = self._read().get(LANGUAGE_KEY)
        return tag.strip() if isinstance(tag, str) and tag.strip() else None

    def save_locale(self, tag: str) -> None:
        with self._write_lock:
            data = self._read()
            data[LANGUAGE_KEY] = tag
            self._write(data)
        logger.debug("Saved locale %s", tag)

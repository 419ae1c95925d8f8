# src/pomodoro_todo/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Loggers that fire once per tick or per state change; they only reach the file log.
_QUIET_PREFIXES = (
    "pomodoro_todo.tasks.tick_driver",
    "pomodoro_todo.tasks.timer_engine",
)


class _ConsoleNoiseFilter(logging.Filter):
    """Keeps the prompt readable while a timer is counting down."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("pomodoro_todo."):
            if name.startswith(_QUIET_PREFIXES):
                return record.levelno >= logging.WARNING
            return True

        # Libraries and captured warnings.
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/pomodoro",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Route all logging to stderr (filtered) and to <log_dir>/pomodoro.log (unfiltered).

    Replaces any handlers already on the root logger, so it must run before
    the first log call of the process.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "pomodoro.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    logfile = logging.FileHandler(str(log_file), encoding="utf-8")
    logfile.setLevel(file_level)
    logfile.setFormatter(fmt)
    root.addHandler(logfile)

    logging.captureWarnings(True)

# src/pomodoro_todo/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing is required at import time; every value has a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "POMO"

SUPPORTED_LANGUAGES = ("en", "ja")
IMPORT_MODES = ("merge", "replace")

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    raw = _env(name, default).strip().lower()
    return raw if raw in choices else default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_path: Path

    # ---- Behaviour ----
    language: str
    import_mode: str
    tick_interval_seconds: float
    notify_bell: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "pomodoro-todo").strip() or "pomodoro-todo"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/pomodoro"))
        store_path = _env_path(_k("STORE_PATH"), data_dir / "store.json")

        language = _env_choice(_k("LANGUAGE"), SUPPORTED_LANGUAGES, "en")
        import_mode = _env_choice(_k("IMPORT_MODE"), IMPORT_MODES, "merge")

        # Sub-second ticks are only useful for demos; clamp to something sane.
        tick_interval_seconds = max(0.05, _env_float(_k("TICK_INTERVAL"), 1.0))
        notify_bell = _env_bool(_k("NOTIFY_BELL"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            store_path=store_path,
            language=language,
            import_mode=import_mode,
            tick_interval_seconds=tick_interval_seconds,
            notify_bell=notify_bell,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS

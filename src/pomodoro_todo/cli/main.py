# src/pomodoro_todo/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs:
- the tick driver in a background thread,
- the console REPL in the main thread.
"""

from __future__ import annotations

import logging
import signal

from ..cli.bootstrap import create_initial_state, save_collection
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks.tick_driver import start_ticker_in_background

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    # Timers do not survive a restart: stop the running one before the final save.
    try:
        running = state.collection.running_id
        if running is not None:
            state.collection.pause(running)
    except Exception:
        logger.exception("Failed to pause the running timer.")

    save_collection(state)

    try:
        state.store.close()
    except Exception:
        logger.debug("Store close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/pomodoro")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "pomodoro-todo"))

    state = create_initial_state(settings=settings)

    ticker = start_ticker_in_background(
        state.collection,
        interval_seconds=settings.tick_interval_seconds,
    )

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        raise KeyboardInterrupt

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError):
        # Not available on every platform / outside the main thread.
        pass

    try:
        run_console_loop(state)
    finally:
        if ticker is not None:
            ticker.stop()
            ticker.join(timeout=5.0)

        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()

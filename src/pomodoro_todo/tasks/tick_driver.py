# src/pomodoro_todo/tasks/tick_driver.py

from __future__ import annotations

"""
Tick driver.

The environment side of the timer: once per interval it delivers a tick to
whichever task is running. There is a single loop for the whole collection, so
switching the running task never leaves a second tick source behind.

Runs either as a coroutine (tests, async hosts) or in a background thread with
its own event loop (console app, whose REPL blocks on input()).
"""

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass

from .timer_engine import TaskCollection

logger = logging.getLogger(__name__)


async def run_tick_loop(
        collection: TaskCollection,
        *,
        interval_seconds: float = 1.0,
        stop_event: asyncio.Event | None = None,
) -> None:
    """
    Every interval_seconds: tick the running task (if any).

    To stop the loop, set stop_event or cancel the coroutine/task.
    """
    sleep_s = max(0.001, float(interval_seconds))

    while stop_event is None or not stop_event.is_set():
        if stop_event is None:
            await asyncio.sleep(sleep_s)
        else:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)
            if stop_event.is_set():
                break

        try:
            collection.tick_running()
        except Exception:
            logger.exception("tick failed running_id=%s", collection.running_id)

    logger.debug("Tick loop stopped.")


@dataclass(slots=True)
class TickerRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal ticker stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_ticker_in_background(
        collection: TaskCollection,
        *,
        interval_seconds: float = 1.0,
) -> TickerRunner | None:
    """Start the tick loop in a daemon thread (so the console REPL can block on input)."""
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                run_tick_loop(collection, interval_seconds=interval_seconds, stop_event=stop_event)
            )
        finally:
            with contextlib.suppress(Exception):
                loop.stop()
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="pomodoro-ticker", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Ticker thread did not initialize properly.")
        return None

    logger.info("Ticker thread started (interval=%.2fs).", interval_seconds)
    return TickerRunner(thread=t, loop=loop, stop_event=stop_event)

# src/pomodoro_todo/tasks/calendar_import.py

from __future__ import annotations

"""
iCalendar (VTODO) import.

Turns the raw text of a calendar export into task seeds for today:
- one candidate per BEGIN:VTODO block (text before the first block is ignored),
- kept only if due today, not COMPLETED, and with a non-empty SUMMARY,
- estimate derived from a "PT<hours>H" duration in DESCRIPTION (2 pomodoros per hour).

Pure function: no I/O, never raises for malformed input.
"""

import logging
import math
import re
from dataclasses import dataclass
from datetime import date

from .task_models import Task, new_task

logger = logging.getLogger(__name__)

BLOCK_MARKER = "BEGIN:VTODO"
COMPLETED_STATUS = "COMPLETED"
POMODOROS_PER_HOUR = 2

DURATION_REGEX = re.compile(r"PT(\d+(?:\.\d+)?)H")
DATE_TOKEN_REGEX = re.compile(r"\d{8}")


@dataclass(slots=True)
class _TodoFields:
    summary: str = ""
    due: str = ""
    status: str = ""
    description: str = ""


def _due_token(value: str) -> str:
    # "20261019" or "20261019T090000Z" -> "20261019"
    head = value.strip()[:8]
    return head if DATE_TOKEN_REGEX.fullmatch(head) else ""


def _parse_block(block: str) -> _TodoFields:
    fields = _TodoFields()
    for raw_line in block.split("\n"):
        line = raw_line.rstrip("\r")
        if line.startswith("SUMMARY:"):
            fields.summary = line[len("SUMMARY:") :].strip()
        elif line.startswith("DUE;VALUE=DATE:"):
            fields.due = _due_token(line[len("DUE;VALUE=DATE:") :])
        elif line.startswith("DUE:") or line.startswith("DUE;"):
            # DUE:20261019T090000Z / DUE;TZID=Asia/Tokyo:20261019T090000
            _, _, value = line.partition(":")
            fields.due = _due_token(value)
        elif line.startswith("STATUS:"):
            fields.status = line[len("STATUS:") :].strip()
        elif line.startswith("DESCRIPTION:"):
            fields.description = line[len("DESCRIPTION:") :].strip()
    return fields


def estimate_pomodoros(description: str) -> int:
    """
    PT<hours>H -> ceil(hours * 2), at least 1.
    No (or unparseable) duration -> 1.
    """
    m = DURATION_REGEX.search(description or "")
    if not m:
        return 1
    try:
        hours = float(m.group(1))
    except ValueError:
        return 1
    if not math.isfinite(hours):
        return 1
    return max(1, math.ceil(hours * POMODOROS_PER_HOUR))


def extract_today_tasks(raw_text: str, *, today: date | None = None) -> list[Task]:
    """
    Return fresh tasks for every VTODO due `today` (local date by default).

    Output order follows block order in the source; empty input -> [].
    """
    if not raw_text:
        return []

    today_str = (today or date.today()).strftime("%Y%m%d")
    blocks = raw_text.split(BLOCK_MARKER)[1:]

    out: list[Task] = []
    for block in blocks:
        fields = _parse_block(block)
        if fields.due != today_str:
            continue
        if fields.status == COMPLETED_STATUS:
            continue
        if not fields.summary:
            continue
        out.append(new_task(fields.summary, estimated_pomodoros=estimate_pomodoros(fields.description)))

    logger.debug("Calendar import: %d blocks, %d tasks for %s", len(blocks), len(out), today_str)
    return out

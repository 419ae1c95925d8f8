"""Pomodoro task list: per-task work/break timers with iCalendar import."""

__version__ = "0.1.0"

"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Phase) and the persisted record shape
- timer_engine.py: TaskCollection, the per-task pomodoro state machine
- calendar_import.py: iCalendar VTODO filter producing today's task seeds
- task_store.py: JSON-file storage for the task list and locale
- tick_driver.py: periodic tick source for the running task
"""

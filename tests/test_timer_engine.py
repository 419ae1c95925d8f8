# tests/test_timer_engine.py

from __future__ import annotations

import random

import pytest

from pomodoro_todo.core.errors import InvalidTaskText, TaskNotFound
from pomodoro_todo.tasks.task_models import (
    BREAK_DURATION,
    WORK_DURATION,
    Phase,
    new_task,
    phase_duration,
)
from pomodoro_todo.tasks.timer_engine import ImportMode, TaskCollection

from .fakes import ExplodingNotifier, FakeNotifier


def _assert_invariants(collection: TaskCollection) -> None:
    tasks = collection.tasks()
    running = [t for t in tasks if t.is_running]
    assert len(running) <= 1
    for t in tasks:
        assert 0 <= t.remaining_time <= phase_duration(t.current_phase)
        assert t.estimated_pomodoros >= 1
        assert t.completed_pomodoros >= 0
        if t.completed:
            assert not t.is_running


def test_add_creates_fresh_task_at_front(collection: TaskCollection) -> None:
    first = collection.add("Write report")
    second = collection.add("  Review PR  ")

    assert second.text == "Review PR"
    assert second.completed is False
    assert second.estimated_pomodoros == 1
    assert second.completed_pomodoros == 0
    assert second.current_phase == Phase.WORK
    assert second.remaining_time == WORK_DURATION
    assert second.is_running is False
    assert first.id != second.id

    assert [t.text for t in collection.tasks()] == ["Review PR", "Write report"]


@pytest.mark.parametrize("text", ["", "   ", "\t\n"])
def test_add_rejects_blank_text(collection: TaskCollection, text: str) -> None:
    with pytest.raises(InvalidTaskText):
        collection.add(text)
    assert len(collection) == 0


def test_start_stops_other_running_task(collection: TaskCollection) -> None:
    a = collection.add("a")
    b = collection.add("b")

    collection.start(a.id)
    for _ in range(10):
        collection.tick(a.id)

    collection.start(b.id)

    a_now = collection.get(a.id)
    assert a_now is not None
    assert a_now.is_running is False
    assert a_now.remaining_time == WORK_DURATION - 10
    assert a_now.current_phase == Phase.WORK
    assert collection.running_id == b.id
    _assert_invariants(collection)


def test_start_is_idempotent(collection: TaskCollection) -> None:
    a = collection.add("a")
    collection.start(a.id)
    version = collection.version

    again = collection.start(a.id)

    assert again is not None and again.is_running
    assert collection.version == version
    assert collection.running_id == a.id


def test_start_ignores_completed_task(collection: TaskCollection) -> None:
    a = collection.add("a")
    collection.toggle_complete(a.id)

    collection.start(a.id)

    assert collection.running_id is None
    assert collection.get(a.id).is_running is False


def test_full_work_phase_counts_pomodoro_and_stops(
    collection: TaskCollection, notifier: FakeNotifier
) -> None:
    a = collection.add("focus")
    collection.start(a.id)

    for _ in range(WORK_DURATION):
        collection.tick(a.id)

    done = collection.get(a.id)
    assert done.current_phase == Phase.BREAK
    assert done.remaining_time == BREAK_DURATION
    assert done.completed_pomodoros == 1
    assert done.is_running is False
    assert collection.running_id is None

    assert len(notifier.events) == 1
    assert notifier.events[0].finished_phase == Phase.WORK
    assert notifier.events[0].task.current_phase == Phase.BREAK


def test_break_expiry_returns_to_work_without_counting(
    collection: TaskCollection, notifier: FakeNotifier
) -> None:
    a = collection.add("focus")
    collection.start(a.id)
    for _ in range(WORK_DURATION):
        collection.tick(a.id)

    # Phase transitions do not auto-continue.
    collection.tick(a.id)
    assert collection.get(a.id).remaining_time == BREAK_DURATION

    collection.start(a.id)
    for _ in range(BREAK_DURATION):
        collection.tick(a.id)

    after = collection.get(a.id)
    assert after.current_phase == Phase.WORK
    assert after.remaining_time == WORK_DURATION
    assert after.completed_pomodoros == 1
    assert after.is_running is False
    assert [e.finished_phase for e in notifier.events] == [Phase.WORK, Phase.BREAK]


def test_tick_ignores_idle_and_unknown_tasks(collection: TaskCollection) -> None:
    a = collection.add("a")
    version = collection.version

    assert collection.tick(a.id) is None
    assert collection.tick("missing") is None
    assert collection.tick_running() is None

    assert collection.get(a.id).remaining_time == WORK_DURATION
    assert collection.version == version


def test_tick_running_targets_current_task(collection: TaskCollection) -> None:
    a = collection.add("a")
    b = collection.add("b")
    collection.start(b.id)

    snap = collection.tick_running()

    assert snap is not None and snap.id == b.id
    assert collection.get(b.id).remaining_time == WORK_DURATION - 1
    assert collection.get(a.id).remaining_time == WORK_DURATION


def test_pause_keeps_countdown(collection: TaskCollection) -> None:
    a = collection.add("a")
    collection.start(a.id)
    for _ in range(5):
        collection.tick(a.id)

    paused = collection.pause(a.id)

    assert paused.is_running is False
    assert paused.remaining_time == WORK_DURATION - 5

    version = collection.version
    collection.pause(a.id)
    assert collection.version == version


def test_reset_forces_fresh_work_phase(collection: TaskCollection) -> None:
    a = collection.add("a")
    collection.adjust_estimate(a.id, 2)
    collection.start(a.id)
    for _ in range(WORK_DURATION):
        collection.tick(a.id)
    collection.start(a.id)
    collection.tick(a.id)

    reset = collection.reset(a.id)

    assert reset.current_phase == Phase.WORK
    assert reset.remaining_time == WORK_DURATION
    assert reset.is_running is False
    assert reset.completed_pomodoros == 1
    assert reset.estimated_pomodoros == 3
    assert collection.running_id is None


def test_reset_leaves_completed_task_untouched(collection: TaskCollection) -> None:
    a = collection.add("a")
    collection.start(a.id)
    for _ in range(WORK_DURATION):
        collection.tick(a.id)
    collection.toggle_complete(a.id)
    version = collection.version

    frozen = collection.reset(a.id)

    assert frozen.completed is True
    assert frozen.current_phase == Phase.BREAK
    assert frozen.remaining_time == BREAK_DURATION
    assert frozen.completed_pomodoros == 1
    assert collection.version == version


def test_toggle_complete_stops_timer_and_reopen_does_not_start(
    collection: TaskCollection,
) -> None:
    a = collection.add("a")
    collection.start(a.id)
    for _ in range(3):
        collection.tick(a.id)

    done = collection.toggle_complete(a.id)
    assert done.completed is True
    assert done.is_running is False
    assert collection.running_id is None

    reopened = collection.toggle_complete(a.id)
    assert reopened.completed is False
    assert reopened.is_running is False
    assert reopened.remaining_time == WORK_DURATION - 3
    assert reopened.current_phase == Phase.WORK


def test_completed_task_ignores_estimate_changes(collection: TaskCollection) -> None:
    a = collection.add("a")
    collection.toggle_complete(a.id)

    collection.adjust_estimate(a.id, 3)

    assert collection.get(a.id).estimated_pomodoros == 1


def test_adjust_estimate_clamps_at_one(collection: TaskCollection) -> None:
    a = collection.add("a")

    assert collection.adjust_estimate(a.id, -1).estimated_pomodoros == 1
    assert collection.adjust_estimate(a.id, 3).estimated_pomodoros == 4
    assert collection.adjust_estimate(a.id, -10).estimated_pomodoros == 1


def test_delete_running_task_clears_timer(collection: TaskCollection) -> None:
    a = collection.add("a")
    collection.start(a.id)

    removed = collection.delete(a.id)

    assert removed is not None and removed.id == a.id
    assert collection.running_id is None
    assert collection.get(a.id) is None
    assert collection.tick(a.id) is None


def test_unknown_ids_are_noops(collection: TaskCollection) -> None:
    collection.add("a")
    version = collection.version

    assert collection.delete("nope") is None
    assert collection.toggle_complete("nope") is None
    assert collection.adjust_estimate("nope", 1) is None
    assert collection.start("nope") is None
    assert collection.pause("nope") is None
    assert collection.reset("nope") is None
    assert collection.version == version

    with pytest.raises(TaskNotFound):
        collection.require("nope")


def test_snapshots_are_copies(collection: TaskCollection) -> None:
    a = collection.add("a")
    a.remaining_time = 1
    a.completed = True

    for t in collection.tasks():
        t.estimated_pomodoros = 99

    stored = collection.get(a.id)
    assert stored.remaining_time == WORK_DURATION
    assert stored.completed is False
    assert stored.estimated_pomodoros == 1


def test_listeners_run_on_change_and_notifier_failures_are_ignored() -> None:
    exploding = ExplodingNotifier()
    collection = TaskCollection(notifier=exploding)
    seen: list[int] = []
    collection.add_listener(lambda version, records: seen.append(version))

    a = collection.add("a")
    collection.start(a.id)
    for _ in range(WORK_DURATION):
        collection.tick(a.id)

    assert exploding.calls == 1
    assert collection.get(a.id).completed_pomodoros == 1
    assert seen == sorted(seen)
    assert seen[-1] == collection.version


def test_import_merge_puts_new_tasks_first_in_source_order(collection: TaskCollection) -> None:
    old = collection.add("old")
    seeds = [new_task("one"), new_task("two", estimated_pomodoros=3)]

    inserted = collection.import_tasks(seeds, ImportMode.MERGE)

    assert [t.text for t in inserted] == ["one", "two"]
    assert [t.text for t in collection.tasks()] == ["one", "two", "old"]
    assert collection.get(old.id) is not None


def test_import_replace_stops_running_timer(collection: TaskCollection) -> None:
    old = collection.add("old")
    collection.start(old.id)

    collection.import_tasks([new_task("fresh")], ImportMode.REPLACE)

    assert collection.running_id is None
    assert [t.text for t in collection.tasks()] == ["fresh"]


def test_import_gives_fresh_id_on_collision(collection: TaskCollection) -> None:
    old = collection.add("old")
    clash = new_task("clash")
    clash.id = old.id

    inserted = collection.import_tasks([clash])

    assert inserted[0].id != old.id
    assert len({t.id for t in collection.tasks()}) == 2


def test_import_mode_parse() -> None:
    assert ImportMode.parse("REPLACE") == ImportMode.REPLACE
    assert ImportMode.parse(None) == ImportMode.MERGE
    assert ImportMode.parse("bogus", default=ImportMode.REPLACE) == ImportMode.REPLACE


def test_from_records_applies_load_defaults() -> None:
    records = [
        {"id": 1, "text": "legacy", "completed": False, "estimatedPomodoros": 2, "completedPomodoros": 1},
        {
            "id": "b",
            "text": "on break",
            "currentPhase": "break",
            "remainingTime": 5000,
            "isRunning": True,
        },
        {"id": "c", "text": "   "},
        "garbage",
    ]

    collection = TaskCollection.from_records(records)
    tasks = collection.tasks()

    assert [t.text for t in tasks] == ["legacy", "on break"]
    assert tasks[0].id == "1"
    assert tasks[0].current_phase == Phase.WORK
    assert tasks[0].remaining_time == WORK_DURATION
    assert tasks[0].completed_pomodoros == 1
    assert tasks[1].current_phase == Phase.BREAK
    assert tasks[1].remaining_time == BREAK_DURATION
    assert collection.running_id is None
    assert not any(t.is_running for t in tasks)


def test_to_records_never_contains_running_flag(collection: TaskCollection) -> None:
    a = collection.add("a")
    collection.start(a.id)

    records = collection.to_records()

    assert records == [
        {
            "id": a.id,
            "text": "a",
            "completed": False,
            "estimatedPomodoros": 1,
            "completedPomodoros": 0,
            "currentPhase": "work",
            "remainingTime": WORK_DURATION,
        }
    ]


def test_all_completed(collection: TaskCollection) -> None:
    assert collection.all_completed() is False
    a = collection.add("a")
    b = collection.add("b")
    collection.toggle_complete(a.id)
    assert collection.counts() == (1, 1, 2)
    assert collection.all_completed() is False
    collection.toggle_complete(b.id)
    assert collection.all_completed() is True


def test_random_operation_walk_keeps_invariants(collection: TaskCollection) -> None:
    rng = random.Random(1234)
    for i in range(4):
        collection.add(f"task {i}")

    counters: dict[str, int] = {}
    frozen: dict[str, tuple[Phase, int]] = {}
    for _ in range(3000):
        ids = [t.id for t in collection.tasks()]
        op = rng.choice(["start", "tick", "tick", "tick", "pause", "reset", "toggle", "est", "add", "delete"])
        target = rng.choice(ids) if ids else "none"

        if op == "start":
            collection.start(target)
        elif op == "tick":
            for _ in range(rng.randint(1, 400)):
                collection.tick_running()
        elif op == "pause":
            collection.pause(target)
        elif op == "reset":
            collection.reset(target)
        elif op == "toggle":
            collection.toggle_complete(target)
        elif op == "est":
            collection.adjust_estimate(target, rng.randint(-3, 3))
        elif op == "add":
            collection.add(f"task {rng.random()}")
        elif op == "delete" and len(ids) > 3:
            collection.delete(target)

        _assert_invariants(collection)
        for t in collection.tasks():
            assert t.completed_pomodoros >= counters.get(t.id, 0)
            counters[t.id] = t.completed_pomodoros
            if not t.completed:
                frozen.pop(t.id, None)
            elif t.id in frozen:
                assert (t.current_phase, t.remaining_time) == frozen[t.id]
            else:
                frozen[t.id] = (t.current_phase, t.remaining_time)


def test_listener_records_match_the_change(collection: TaskCollection) -> None:
    changes: list[tuple[int, list[dict]]] = []
    collection.add_listener(lambda version, records: changes.append((version, records)))

    a = collection.add("a")
    collection.start(a.id)
    collection.tick(a.id)

    assert [v for v, _ in changes] == [1, 2, 3]
    assert changes[-1][1][0]["remainingTime"] == WORK_DURATION - 1
    assert collection.snapshot_records() == changes[-1]

# tests/test_scoring.py

from __future__ import annotations

import itertools
from datetime import date

from flowx.tasks.scoring import (
    PRIORITY_WEIGHTS,
    ScoringPolicy,
    compute_score,
    day_breakdown,
    ledger_stats,
    rescore_day,
    weights,
)
from flowx.tasks.task_models import PerformanceRecord, Priority, TaskFields, TaskStatus, parse_hhmm
from flowx.tasks.task_store import TaskStore

from .fakes import MONDAY, MemoryKeyValueStore, make_task


def test_high_done_low_missed_scores_75() -> None:
    tasks = [
        make_task(name="a", priority=Priority.HIGH, status=TaskStatus.COMPLETED),
        make_task(name="b", priority=Priority.LOW, status=TaskStatus.NOT_COMPLETED),
    ]
    assert weights(tasks) == (1.5, 2.0)
    assert compute_score(tasks) == 75


def test_single_late_medium_scores_50() -> None:
    assert compute_score([make_task(priority=Priority.MEDIUM, status=TaskStatus.COMPLETED_LATE)]) == 50


def test_empty_day_scores_zero() -> None:
    assert compute_score([]) == 0


def test_rounding_is_half_up() -> None:
    # earned 0.25 of total 2.0 -> 12.5; Python's round() would give 12
    tasks = [
        make_task(name="a", priority=Priority.LOW, status=TaskStatus.COMPLETED_LATE),
        make_task(name="b", priority=Priority.HIGH, status=TaskStatus.PENDING),
    ]
    assert compute_score(tasks) == 13


def test_score_matches_formula_and_stays_in_range_for_every_status_mix() -> None:
    priorities = [Priority.LOW, Priority.MEDIUM, Priority.HIGH]
    for statuses in itertools.product(list(TaskStatus), repeat=3):
        tasks = [
            make_task(name=f"t{i}", priority=p, status=s)
            for i, (p, s) in enumerate(zip(priorities, statuses))
        ]
        total = sum(PRIORITY_WEIGHTS[p] for p in priorities)
        earned = sum(
            PRIORITY_WEIGHTS[p] * {TaskStatus.COMPLETED: 1.0, TaskStatus.COMPLETED_LATE: 0.5}.get(s, 0.0)
            for p, s in zip(priorities, statuses)
        )
        score = compute_score(tasks)
        assert 0 <= score <= 100
        assert abs(score - 100 * earned / total) <= 0.5 + 1e-9


def test_late_credit_is_configurable() -> None:
    tasks = [make_task(priority=Priority.MEDIUM, status=TaskStatus.COMPLETED_LATE)]
    assert compute_score(tasks, ScoringPolicy(late_credit=0.0)) == 0
    assert compute_score(tasks, ScoringPolicy(late_credit=1.0)) == 100


def test_day_breakdown_counts_each_status() -> None:
    tasks = [
        make_task(name="a", status=TaskStatus.COMPLETED),
        make_task(name="b", status=TaskStatus.COMPLETED_LATE),
        make_task(name="c", status=TaskStatus.NOT_COMPLETED),
        make_task(name="d"),
        make_task(name="e"),
    ]
    b = day_breakdown(tasks)
    assert (b.done, b.late, b.missed, b.pending) == (1, 1, 1, 2)
    assert b.successful == 2
    assert b.total == 5


def _fields(name: str, day: date = MONDAY, priority: Priority = Priority.MEDIUM) -> TaskFields:
    return TaskFields(name=name, date=day, start_time=parse_hhmm("18:00"), duration=30, priority=priority)


def test_rescore_day_upserts_one_record_per_date() -> None:
    store = TaskStore(MemoryKeyValueStore())
    a = store.create_task(_fields("a", priority=Priority.HIGH))
    store.create_task(_fields("b", priority=Priority.LOW))

    assert rescore_day(store, MONDAY) == 0
    store.update_task_status(a.id, TaskStatus.COMPLETED)
    assert rescore_day(store, MONDAY) == 75

    records = store.list_performance_records()
    assert records == [PerformanceRecord(date=MONDAY, score=75, completed_tasks=1, total_tasks=2)]


def test_rescore_day_without_tasks_writes_nothing() -> None:
    store = TaskStore(MemoryKeyValueStore())
    store.create_task(_fields("a"))

    assert rescore_day(store, date(2026, 1, 6)) == 0
    assert store.list_performance_records() == []


def test_completed_count_includes_late_completions() -> None:
    store = TaskStore(MemoryKeyValueStore())
    a = store.create_task(_fields("a"))
    b = store.create_task(_fields("b"))
    store.update_task_status(a.id, TaskStatus.COMPLETED)
    store.update_task_status(b.id, TaskStatus.COMPLETED_LATE)

    rescore_day(store, MONDAY)
    rec = store.get_performance_record(MONDAY)
    assert rec is not None
    assert rec.completed_tasks == 2
    assert rec.score == 75


def test_ledger_stats() -> None:
    assert ledger_stats([]).peak_score is None
    assert ledger_stats([]).average_score is None

    records = [
        PerformanceRecord(date=date(2026, 1, 5), score=75, completed_tasks=1, total_tasks=2),
        PerformanceRecord(date=date(2026, 1, 6), score=50, completed_tasks=1, total_tasks=1),
        PerformanceRecord(date=date(2026, 1, 7), score=60, completed_tasks=3, total_tasks=5),
    ]
    stats = ledger_stats(records)
    assert stats.peak_score == 75
    assert stats.average_score == 62  # 61.67
    assert stats.total_days == 3
    assert stats.total_tasks == 8

# src/flowx/tasks/scoring.py

"""
Daily efficiency score and performance-ledger aggregation.

score = round(100 * earned / total), where every task on the day adds its
priority weight to total, and to earned:
- the full weight when Completed,
- late_credit * weight when Completed Late,
- nothing when Pending or Not Completed.

Rounding is half-up (75.5 -> 76), not Python's banker's rounding.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from ..core.ports import TaskRepo
from .task_models import PerformanceRecord, Priority, Task, TaskStatus, is_successful

logger = logging.getLogger(__name__)

PRIORITY_WEIGHTS: dict[Priority, float] = {
    Priority.LOW: 0.5,
    Priority.MEDIUM: 1.0,
    Priority.HIGH: 1.5,
}

DEFAULT_LATE_CREDIT = 0.5


@dataclass(frozen=True, slots=True)
class ScoringPolicy:
    late_credit: float = DEFAULT_LATE_CREDIT
    weights: tuple[tuple[Priority, float], ...] = tuple(PRIORITY_WEIGHTS.items())

    def weight(self, priority: Priority) -> float:
        return dict(self.weights)[priority]

    def credit(self, status: TaskStatus) -> float:
        if status is TaskStatus.COMPLETED:
            return 1.0
        if status is TaskStatus.COMPLETED_LATE:
            return self.late_credit
        return 0.0


DEFAULT_POLICY = ScoringPolicy()


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def weights(tasks: Iterable[Task], policy: ScoringPolicy = DEFAULT_POLICY) -> tuple[float, float]:
    """Return (earned, total) weight for tasks."""
    earned = 0.0
    total = 0.0
    for t in tasks:
        w = policy.weight(t.priority)
        total += w
        earned += w * policy.credit(t.status)
    return earned, total


def compute_score(tasks: Iterable[Task], policy: ScoringPolicy = DEFAULT_POLICY) -> int:
    earned, total = weights(tasks, policy)
    if total <= 0:
        return 0
    return max(0, min(100, round_half_up(earned / total * 100)))


@dataclass(frozen=True, slots=True)
class DayBreakdown:
    done: int
    late: int
    missed: int
    pending: int

    @property
    def total(self) -> int:
        return self.done + self.late + self.missed + self.pending

    @property
    def successful(self) -> int:
        return self.done + self.late


def day_breakdown(tasks: Iterable[Task]) -> DayBreakdown:
    counts = {s: 0 for s in TaskStatus}
    for t in tasks:
        counts[t.status] += 1
    return DayBreakdown(
        done=counts[TaskStatus.COMPLETED],
        late=counts[TaskStatus.COMPLETED_LATE],
        missed=counts[TaskStatus.NOT_COMPLETED],
        pending=counts[TaskStatus.PENDING],
    )


def build_performance_record(
    day: date, tasks: list[Task], policy: ScoringPolicy = DEFAULT_POLICY
) -> PerformanceRecord | None:
    """Ledger entry for day, or None when the day has no tasks."""
    if not tasks:
        return None
    return PerformanceRecord(
        date=day,
        score=compute_score(tasks, policy),
        completed_tasks=sum(1 for t in tasks if is_successful(t.status)),
        total_tasks=len(tasks),
    )


def rescore_day(store: TaskRepo, day: date, policy: ScoringPolicy = DEFAULT_POLICY) -> int:
    """
    Recompute day's score and upsert its ledger record.

    Days without tasks score 0 and leave the ledger untouched.
    """
    tasks = store.list_tasks_for_date(day)
    record = build_performance_record(day, tasks, policy)
    if record is None:
        return 0
    store.upsert_performance_record(record)
    logger.debug("Rescored %s -> %d (%d/%d)", day, record.score, record.completed_tasks, record.total_tasks)
    return record.score


@dataclass(frozen=True, slots=True)
class LedgerStats:
    peak_score: int | None
    average_score: int | None
    total_days: int
    total_tasks: int


def ledger_stats(records: Iterable[PerformanceRecord]) -> LedgerStats:
    recs = list(records)
    if not recs:
        return LedgerStats(peak_score=None, average_score=None, total_days=0, total_tasks=0)
    scores = [r.score for r in recs]
    return LedgerStats(
        peak_score=max(scores),
        average_score=round_half_up(sum(scores) / len(scores)),
        total_days=len(recs),
        total_tasks=sum(r.total_tasks for r in recs),
    )

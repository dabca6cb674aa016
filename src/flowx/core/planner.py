# src/flowx/core/planner.py

"""
Planner service: the surface presentation code talks to.

Transport-agnostic:
- connectors pass validated form input, button presses and date changes,
- the planner drives the store / state machine and rescores the affected day
  synchronously after every change, so the ledger is always current,
- connectors decide how to display the results.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime

from ..llm.coach import Coach
from ..profile.profile_models import UserProfile
from ..profile.schedule import extra_hours_for, has_work_hours_conflict, is_work_day
from ..tasks.countdown import Countdown, evaluate
from ..tasks.lifecycle import TaskEvent, next_status
from ..tasks.scoring import (
    DEFAULT_POLICY,
    DayBreakdown,
    LedgerStats,
    ScoringPolicy,
    compute_score,
    day_breakdown,
    ledger_stats,
    rescore_day,
)
from ..tasks.task_models import Task, TaskFields, format_hhmm
from ..tasks.task_store import TaskStore
from .errors import InvalidTransitionError
from .ports import Speaker

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
ConfirmPrompt = Callable[[str], bool]


@dataclass(frozen=True, slots=True)
class ScheduleResult:
    task: Task
    conflict_warning: str | None


class Planner:
    def __init__(
            self,
            store: TaskStore,
            profile: UserProfile,
            coach: Coach,
            speaker: Speaker,
            *,
            policy: ScoringPolicy = DEFAULT_POLICY,
            clock: Clock = datetime.now,
    ) -> None:
        self.store = store
        self.profile = profile
        self.coach = coach
        self.speaker = speaker
        self.policy = policy
        self._clock = clock
        self.active_date: date = clock().date()
        self._rescore(self.active_date)

    def _rescore(self, day: date) -> int:
        return rescore_day(self.store, day, self.policy)

    # ---- date selection ----

    def today(self) -> date:
        return self._clock().date()

    def select_date(self, day: date) -> int:
        self.active_date = day
        score = self._rescore(day)
        logger.debug("Active date -> %s (score=%d)", day, score)
        return score

    def tasks_for_active_date(self) -> list[Task]:
        return self.store.list_tasks_for_date(self.active_date)

    def day_kind(self, day: date | None = None) -> str:
        return "work day" if is_work_day(self.profile, day or self.active_date) else "rest day"

    def work_windows(self, day: date | None = None) -> list[str]:
        d = day or self.active_date
        windows = []
        if is_work_day(self.profile, d):
            h = self.profile.regular_hours
            windows.append(f"{format_hhmm(h.start)}-{format_hhmm(h.end)}")
        for e in extra_hours_for(self.profile, d):
            windows.append(f"{format_hhmm(e.hours.start)}-{format_hhmm(e.hours.end)} (extra)")
        return windows

    # ---- task lifecycle ----

    def conflict_warning(self, fields: TaskFields) -> str | None:
        h = self.profile.regular_hours
        if not has_work_hours_conflict(fields.start_time, h.start, h.end):
            return None
        return (
            "This task starts during your primary work window "
            f"({format_hhmm(h.start)}-{format_hhmm(h.end)})."
        )

    def schedule_task(self, fields: TaskFields) -> ScheduleResult:
        """Create a task from validated fields; a work-hours clash is reported, not blocking."""
        warning = self.conflict_warning(fields)
        if warning:
            logger.info("Scheduling %r inside the work window", fields.name)
        task = self.store.create_task(fields)
        self._rescore(task.date)
        return ScheduleResult(task=task, conflict_warning=warning)

    def apply_event(self, task_id: str, event: TaskEvent) -> Task:
        task = self.store.get_task(task_id)
        try:
            target = next_status(task, event, self._clock())
        except InvalidTransitionError as e:
            logger.info("Ignoring %s for task id=%s: %s", event.value, task_id, e)
            return task
        updated = self.store.update_task_status(task_id, target)
        self._rescore(updated.date)
        return updated

    def mark_done(self, task_id: str) -> Task:
        return self.apply_event(task_id, TaskEvent.MARK_DONE)

    def mark_failed(self, task_id: str) -> Task:
        return self.apply_event(task_id, TaskEvent.MARK_FAILED)

    def run_voice_reminder(self, task_id: str, confirm: ConfirmPrompt) -> Task:
        """
        Speak the reminder for a task, then ask whether it was completed on time.

        The reminder script is generated once and cached on the task.
        """
        task = self.store.get_task(task_id)
        text = task.voice_reminder
        if not text:
            text = self.coach.voice_reminder_text(task)
            self.store.set_voice_reminder(task_id, text)
        try:
            self.speaker.speak(text)
        except Exception:
            logger.exception("Speaker failed task_id=%s", task_id)

        yes = confirm(f'Did you complete "{task.name}" on time?')
        event = TaskEvent.VOICE_CONFIRMED if yes else TaskEvent.VOICE_DECLINED
        return self.apply_event(task_id, event)

    # ---- derived views ----

    def countdowns(self, now: datetime | None = None) -> list[tuple[Task, Countdown]]:
        ts = now or self._clock()
        return [(t, evaluate(t, ts)) for t in self.tasks_for_active_date()]

    def score(self, day: date | None = None) -> int:
        return compute_score(self.store.list_tasks_for_date(day or self.active_date), self.policy)

    def day_breakdown(self, day: date | None = None) -> DayBreakdown:
        return day_breakdown(self.store.list_tasks_for_date(day or self.active_date))

    def ledger_stats(self) -> LedgerStats:
        return ledger_stats(self.store.list_performance_records())

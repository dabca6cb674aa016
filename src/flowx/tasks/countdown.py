# src/flowx/tasks/countdown.py

"""
Countdown / due evaluation.

evaluate() is a pure read: given a task and "now" it derives the remaining-time
label and the due flag. It never touches the task status; reaching "Elapsed"
is informational only.

run_countdown() / CountdownBoard drive evaluate() once per tick for tasks that
are on screen. Each watched task has exactly one ticker; it must be cancelled
when the task is no longer displayed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from .task_models import Task

logger = logging.getLogger(__name__)

ELAPSED_LABEL = "Elapsed"

_DAY = 86400
_HOUR = 3600
_MINUTE = 60


class CountdownPhase(StrEnum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    ELAPSED = "elapsed"


@dataclass(frozen=True, slots=True)
class Countdown:
    label: str
    due: bool
    phase: CountdownPhase


def _whole_seconds(delta_seconds: float) -> int:
    return int(delta_seconds // 1)


def evaluate(task: Task, now: datetime) -> Countdown:
    start = task.start_at
    end = task.end_at

    if now < start:
        secs = _whole_seconds((start - now).total_seconds())
        days, rem = divmod(secs, _DAY)
        hours, rem = divmod(rem, _HOUR)
        minutes, seconds = divmod(rem, _MINUTE)
        if days > 0:
            label = f"{days}d {hours}h"
        else:
            label = f"{hours}h {minutes}m {seconds}s"
        return Countdown(label=label, due=False, phase=CountdownPhase.UPCOMING)

    if now < end:
        secs = _whole_seconds((end - now).total_seconds())
        minutes, seconds = divmod(secs, _MINUTE)
        return Countdown(label=f"{minutes}m {seconds}s remaining", due=False, phase=CountdownPhase.ACTIVE)

    return Countdown(label=ELAPSED_LABEL, due=True, phase=CountdownPhase.ELAPSED)


TickCallback = Callable[[Task, Countdown], None]


async def run_countdown(
        task: Task,
        on_tick: TickCallback,
        *,
        interval_seconds: float = 1.0,
        clock: Callable[[], datetime] = datetime.now,
) -> None:
    """
    Evaluate task every interval_seconds and report through on_tick.

    Runs until cancelled. A failing callback is logged and the ticker keeps going.
    """
    sleep_s = max(0.01, float(interval_seconds))
    while True:
        result = evaluate(task, clock())
        try:
            on_tick(task, result)
        except Exception:
            logger.exception("countdown tick callback failed task_id=%s", task.id)
        await asyncio.sleep(sleep_s)


class CountdownBoard:
    """
    Owns the running countdown tickers, one per task id.

    watch() on an id that is already watched cancels the old ticker first,
    so a ticker never outlives the task view it was started for.
    """

    def __init__(
            self,
            on_tick: TickCallback,
            *,
            interval_seconds: float = 1.0,
            clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._on_tick = on_tick
        self._interval = interval_seconds
        self._clock = clock
        self._tickers: dict[str, asyncio.Task[None]] = {}

    def watched_ids(self) -> list[str]:
        return [k for k, t in self._tickers.items() if not t.done()]

    def watch(self, task: Task) -> None:
        self.unwatch(task.id)
        self._tickers[task.id] = asyncio.create_task(
            run_countdown(task, self._on_tick, interval_seconds=self._interval, clock=self._clock),
            name=f"countdown:{task.id}",
        )
        logger.debug("countdown started task_id=%s", task.id)

    def unwatch(self, task_id: str) -> None:
        ticker = self._tickers.pop(task_id, None)
        if ticker is not None:
            ticker.cancel()
            logger.debug("countdown cancelled task_id=%s", task_id)

    def show_only(self, tasks: list[Task]) -> None:
        """Keep tickers exactly for tasks (e.g. after the selected date changed)."""
        keep = {t.id for t in tasks}
        for task_id in list(self._tickers):
            if task_id not in keep:
                self.unwatch(task_id)
        for t in tasks:
            self.watch(t)

    async def close(self) -> None:
        tickers = list(self._tickers.values())
        self._tickers.clear()
        for t in tickers:
            t.cancel()
        if tickers:
            await asyncio.gather(*tickers, return_exceptions=True)

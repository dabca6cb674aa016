# src/flowx/tasks/task_store.py

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date
from typing import Any

from ..core.errors import InvalidTransitionError, ParseError, TaskNotFoundError, ValidationError
from ..core.ports import KeyValueStorage
from ..storage.kv_store import STORAGE_KEY_PERFORMANCE, STORAGE_KEY_TASKS, read_json, write_json
from .lifecycle import check_transition
from .task_models import PerformanceRecord, Task, TaskFields, TaskStatus

logger = logging.getLogger(__name__)


def _decode_list(raw: Any, key: str, decode) -> list:
    if not isinstance(raw, list):
        logger.warning("Stored value under key=%s is not a list; ignoring it.", key)
        return []
    out = []
    for i, item in enumerate(raw):
        try:
            out.append(decode(item))
        except ParseError as e:
            logger.warning("Skipping bad entry #%d under key=%s: %s", i, key, e)
    return out


class TaskStore:
    """
    Task collection + per-day performance ledger.

    Explicit lifecycle:
    - load() reads both collections from storage (corrupt data -> empty, logged)
    - every mutation writes through before returning, so later reads
      (and a later process) see it immediately

    Callers only ever get copies of Task objects; the store owns the originals.
    """

    def __init__(self, storage: KeyValueStorage, *, autoload: bool = True) -> None:
        self._storage = storage
        self._tasks: list[Task] = []
        self._ledger: dict[date, PerformanceRecord] = {}
        if autoload:
            self.load()

    # ---- lifecycle ----

    def load(self) -> None:
        raw_tasks = read_json(self._storage, STORAGE_KEY_TASKS, default=[])
        raw_perf = read_json(self._storage, STORAGE_KEY_PERFORMANCE, default=[])

        tasks: list[Task] = _decode_list(raw_tasks, STORAGE_KEY_TASKS, Task.from_dict)
        seen: set[str] = set()
        self._tasks = []
        for t in tasks:
            if t.id in seen:
                logger.warning("Duplicate task id=%s in storage; keeping the first.", t.id)
                continue
            seen.add(t.id)
            self._tasks.append(t)

        # Later entries win, matching upsert semantics.
        self._ledger = {}
        for rec in _decode_list(raw_perf, STORAGE_KEY_PERFORMANCE, PerformanceRecord.from_dict):
            self._ledger[rec.date] = rec

        logger.info("TaskStore loaded tasks=%d ledger=%d", len(self._tasks), len(self._ledger))

    def save(self) -> None:
        self._save_tasks()
        self._save_ledger()

    def _save_tasks(self) -> None:
        write_json(self._storage, STORAGE_KEY_TASKS, [t.to_dict() for t in self._tasks])

    def _save_ledger(self) -> None:
        write_json(
            self._storage,
            STORAGE_KEY_PERFORMANCE,
            [r.to_dict() for r in self.list_performance_records()],
        )

    def _find(self, task_id: str) -> tuple[int, Task]:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i, t
        raise TaskNotFoundError(task_id)

    # ---- tasks ----

    def count_tasks(self) -> int:
        return len(self._tasks)

    def create_task(self, fields: TaskFields) -> Task:
        if not fields.name or not fields.name.strip():
            raise ValidationError("name", "is required")
        if fields.duration <= 0:
            raise ValidationError("duration", "must be a positive number of minutes")

        task = Task(
            id=str(uuid.uuid4()),
            name=fields.name.strip(),
            date=fields.date,
            start_time=fields.start_time.replace(second=0, microsecond=0),
            duration=int(fields.duration),
            priority=fields.priority,
            status=TaskStatus.PENDING,
            alert_time=fields.alert_time,
            notes=fields.notes,
        )
        self._tasks.append(task)
        self._save_tasks()
        logger.debug(
            "Task created id=%s date=%s start=%s priority=%s",
            task.id,
            task.date,
            task.start_time,
            task.priority.value,
        )
        return replace(task)

    def get_task(self, task_id: str) -> Task:
        _, task = self._find(task_id)
        return replace(task)

    def list_tasks(self) -> list[Task]:
        """All tasks in insertion order."""
        return [replace(t) for t in self._tasks]

    def list_tasks_for_date(self, day: date) -> list[Task]:
        """Tasks on day ordered by start time; sorted() is stable, so ties keep insertion order."""
        same_day = [replace(t) for t in self._tasks if t.date == day]
        return sorted(same_day, key=lambda t: t.start_time)

    def update_task_status(self, task_id: str, new_status: TaskStatus) -> Task:
        """
        Move a task to new_status.

        Raises TaskNotFoundError for unknown ids. A transition the state machine
        does not allow (anything out of a terminal state) is a no-op that returns
        the task unchanged.
        """
        i, task = self._find(task_id)
        try:
            check_transition(task.status, new_status)
        except InvalidTransitionError as e:
            logger.info("Ignoring status change for task id=%s: %s", task_id, e)
            return replace(task)

        updated = replace(task, status=new_status)
        self._tasks[i] = updated
        self._save_tasks()
        logger.info("Task %s -> %s", task_id, new_status.value)
        return replace(updated)

    def set_voice_reminder(self, task_id: str, text: str) -> Task:
        i, task = self._find(task_id)
        updated = replace(task, voice_reminder=text)
        self._tasks[i] = updated
        self._save_tasks()
        return replace(updated)

    # ---- performance ledger ----

    def upsert_performance_record(self, record: PerformanceRecord) -> None:
        """Insert or replace the record for record.date (last write wins)."""
        self._ledger[record.date] = record
        self._save_ledger()
        logger.debug("Ledger upsert date=%s score=%s", record.date, record.score)

    def get_performance_record(self, day: date) -> PerformanceRecord | None:
        return self._ledger.get(day)

    def list_performance_records(self) -> list[PerformanceRecord]:
        return [self._ledger[d] for d in sorted(self._ledger)]

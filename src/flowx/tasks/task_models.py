# src/flowx/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import StrEnum
from typing import Any

from ..core.errors import ParseError


class Priority(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class AlertTime(StrEnum):
    AT_START = "at-start"
    BEFORE_COMPLETION = "before-completion"


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    PENDING is the only initial state; the other three are terminal.
    """

    PENDING = "Pending"
    COMPLETED = "Completed"
    COMPLETED_LATE = "Completed Late"
    NOT_COMPLETED = "Not Completed"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        # Older stores may hold "In Progress"; it never counted as done, so it loads as pending.
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


def is_successful(status: TaskStatus) -> bool:
    """True for both on-time and late completion."""
    if status in (TaskStatus.COMPLETED, TaskStatus.COMPLETED_LATE):
        return True
    if status in (TaskStatus.PENDING, TaskStatus.NOT_COMPLETED):
        return False
    raise ValueError(f"unknown status: {status!r}")


def is_terminal(status: TaskStatus) -> bool:
    return status is not TaskStatus.PENDING


def parse_hhmm(raw: str) -> time:
    """Parse a 24h "HH:MM" string. Raises ValueError on anything else."""
    if not isinstance(raw, str):
        raise ValueError(f"expected HH:MM, got {raw!r}")
    s = raw.strip()
    parts = s.split(":")
    if len(parts) != 2 or not all(p.isdigit() and 1 <= len(p) <= 2 for p in parts):
        raise ValueError(f"expected HH:MM, got {raw!r}")
    return time(int(parts[0]), int(parts[1]))


def format_hhmm(t: time) -> str:
    return f"{t.hour:02d}:{t.minute:02d}"


def parse_iso_date(raw: str) -> date:
    """Parse "YYYY-MM-DD". Raises ValueError on anything else (week dates included)."""
    if not isinstance(raw, str):
        raise ValueError(f"expected YYYY-MM-DD, got {raw!r}")
    s = raw.strip()
    if len(s) != 10:
        raise ValueError(f"expected YYYY-MM-DD, got {raw!r}")
    return datetime.strptime(s, "%Y-%m-%d").date()


@dataclass(slots=True, frozen=True)
class TaskFields:
    """Validated input for a new task (see task_api.validate_task_fields)."""

    name: str
    date: date
    start_time: time
    duration: int
    priority: Priority = Priority.MEDIUM
    alert_time: AlertTime = AlertTime.AT_START
    notes: str | None = None


@dataclass(slots=True)
class Task:
    id: str
    name: str
    date: date
    start_time: time
    duration: int  # minutes
    priority: Priority
    status: TaskStatus

    alert_time: AlertTime = AlertTime.AT_START
    notes: str | None = None
    voice_reminder: str | None = None

    @property
    def start_at(self) -> datetime:
        return datetime.combine(self.date, self.start_time)

    @property
    def end_at(self) -> datetime:
        return self.start_at + timedelta(minutes=self.duration)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "date": self.date.isoformat(),
            "startTime": format_hhmm(self.start_time),
            "duration": self.duration,
            "priority": self.priority.value,
            "status": self.status.value,
            "alertTime": self.alert_time.value,
        }
        if self.notes is not None:
            out["notes"] = self.notes
        if self.voice_reminder is not None:
            out["voiceReminder"] = self.voice_reminder
        return out

    @classmethod
    def from_dict(cls, raw: Any) -> Task:
        if not isinstance(raw, dict):
            raise ParseError(f"task entry is not an object: {type(raw).__name__}")
        try:
            task_id = raw["id"]
            name = raw["name"]
            if not isinstance(task_id, str) or not task_id:
                raise ParseError("task id must be a non-empty string")
            if not isinstance(name, str):
                raise ParseError(f"task {task_id}: name must be a string")

            duration = raw["duration"]
            if isinstance(duration, bool) or not isinstance(duration, int | float):
                raise ParseError(f"task {task_id}: duration must be a number")
            if int(duration) != duration or duration <= 0:
                raise ParseError(f"task {task_id}: duration must be a positive integer")

            notes = raw.get("notes")
            voice = raw.get("voiceReminder")
            return cls(
                id=task_id,
                name=name,
                date=parse_iso_date(raw["date"]),
                start_time=parse_hhmm(raw["startTime"]),
                duration=int(duration),
                priority=Priority(raw["priority"]),
                status=TaskStatus.from_db(raw.get("status")),
                alert_time=AlertTime(raw.get("alertTime") or AlertTime.AT_START.value),
                notes=str(notes) if notes is not None else None,
                voice_reminder=str(voice) if voice is not None else None,
            )
        except ParseError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as e:
            raise ParseError(f"malformed task entry: {e}") from e


@dataclass(slots=True, frozen=True)
class PerformanceRecord:
    date: date
    score: int
    completed_tasks: int
    total_tasks: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "score": self.score,
            "completedTasks": self.completed_tasks,
            "totalTasks": self.total_tasks,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> PerformanceRecord:
        if not isinstance(raw, dict):
            raise ParseError(f"performance entry is not an object: {type(raw).__name__}")
        try:
            return cls(
                date=parse_iso_date(raw["date"]),
                score=int(raw["score"]),
                completed_tasks=int(raw.get("completedTasks", 0)),
                total_tasks=int(raw.get("totalTasks", 0)),
            )
        except (KeyError, TypeError, ValueError, AttributeError, OverflowError) as e:
            raise ParseError(f"malformed performance entry: {e}") from e

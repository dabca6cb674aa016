# src/flowx/tasks/lifecycle.py

"""
Task status state machine.

    Pending --mark_done (before end)--> Completed
    Pending --mark_done (at/after end)--> Completed Late
    Pending --mark_failed--> Not Completed
    Pending --voice confirmed--> Completed
    Pending --voice declined--> Not Completed

The three non-pending states are terminal. Time passing never moves a task by itself;
the countdown only changes what is displayed.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from ..core.errors import InvalidTransitionError
from .task_models import Task, TaskStatus, is_terminal


class TaskEvent(StrEnum):
    MARK_DONE = "mark_done"
    MARK_FAILED = "mark_failed"
    VOICE_CONFIRMED = "voice_confirmed"
    VOICE_DECLINED = "voice_declined"


def completion_status(task: Task, now: datetime) -> TaskStatus:
    """On time while the scheduled window has not closed yet, late afterwards."""
    if now < task.end_at:
        return TaskStatus.COMPLETED
    return TaskStatus.COMPLETED_LATE


def check_transition(current: TaskStatus, target: TaskStatus) -> None:
    if is_terminal(current) or not is_terminal(target):
        raise InvalidTransitionError(current.value, target.value)


def next_status(task: Task, event: TaskEvent, now: datetime) -> TaskStatus:
    """
    Resolve the status an event moves the task into.

    Raises InvalidTransitionError if the task already reached a terminal state.
    """
    if event is TaskEvent.MARK_DONE:
        target = completion_status(task, now)
    elif event is TaskEvent.VOICE_CONFIRMED:
        target = TaskStatus.COMPLETED
    elif event in (TaskEvent.MARK_FAILED, TaskEvent.VOICE_DECLINED):
        target = TaskStatus.NOT_COMPLETED
    else:
        raise ValueError(f"unknown event: {event!r}")

    check_transition(task.status, target)
    return target

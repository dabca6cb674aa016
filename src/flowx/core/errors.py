# src/flowx/core/errors.py

"""
Error taxonomy.

Nothing here is fatal to the process:
- ParseError and CollaboratorUnavailable are always recovered where they happen,
- TaskNotFoundError and ValidationError are surfaced to the caller (console / form),
- InvalidTransitionError is raised by the pure state machine and turned into a no-op by the store.
"""

from __future__ import annotations


class FlowxError(Exception):
    """Base class for all flowx errors."""


class ParseError(FlowxError):
    """Stored data could not be decoded."""


class TaskNotFoundError(FlowxError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class ValidationError(FlowxError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class InvalidTransitionError(FlowxError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Illegal status transition {current!r} -> {target!r}")
        self.current = current
        self.target = target


class CollaboratorUnavailable(FlowxError):
    """The AI text-generation service failed, timed out or returned garbage."""

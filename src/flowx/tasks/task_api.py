# src/flowx/tasks/task_api.py

from __future__ import annotations

from datetime import date

from ..core.errors import ValidationError
from .task_models import AlertTime, Priority, TaskFields, parse_hhmm, parse_iso_date


def _lookup_enum(enum_cls, raw: str, field: str):
    s = (raw or "").strip()
    for member in enum_cls:
        if member.value.lower() == s.lower():
            return member
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValidationError(field, f"must be one of {allowed}")


def validate_task_fields(
    *,
    name: str,
    date_str: str | date,
    start_time: str,
    duration: str | int,
    priority: str = Priority.MEDIUM.value,
    notes: str | None = None,
    alert_time: str = AlertTime.AT_START.value,
) -> TaskFields:
    """
    Validate raw task-form input.

    Rejects empty names, non-positive or non-integer durations, malformed HH:MM times,
    malformed YYYY-MM-DD dates and unknown priority / alert values.
    """
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("name", "is required")

    if isinstance(date_str, date):
        day = date_str
    else:
        try:
            day = parse_iso_date(date_str)
        except ValueError:
            raise ValidationError("date", f"expected YYYY-MM-DD, got {date_str!r}") from None

    try:
        start = parse_hhmm(start_time)
    except ValueError:
        raise ValidationError("start_time", f"expected HH:MM, got {start_time!r}") from None

    if isinstance(duration, bool):
        raise ValidationError("duration", "must be a whole number of minutes")
    if isinstance(duration, int):
        minutes = duration
    else:
        try:
            minutes = int(str(duration).strip())
        except ValueError:
            raise ValidationError("duration", "must be a whole number of minutes") from None
    if minutes <= 0:
        raise ValidationError("duration", "must be a positive number of minutes")

    clean_notes = (notes or "").strip() or None

    return TaskFields(
        name=clean_name,
        date=day,
        start_time=start,
        duration=minutes,
        priority=_lookup_enum(Priority, priority, "priority"),
        alert_time=_lookup_enum(AlertTime, alert_time, "alert_time"),
        notes=clean_notes,
    )

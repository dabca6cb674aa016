# tests/test_task_api.py

from __future__ import annotations

from datetime import date, time

import pytest

from flowx.core.errors import ValidationError
from flowx.tasks.task_api import validate_task_fields
from flowx.tasks.task_models import AlertTime, Priority


def _valid(**overrides):
    kwargs = dict(name=" Study ", date_str="2026-01-05", start_time="18:00", duration="45")
    kwargs.update(overrides)
    return validate_task_fields(**kwargs)


def test_valid_input_is_normalized() -> None:
    fields = _valid(priority="high", notes="  ", alert_time="Before-Completion")

    assert fields.name == "Study"
    assert fields.date == date(2026, 1, 5)
    assert fields.start_time == time(18, 0)
    assert fields.duration == 45
    assert fields.priority is Priority.HIGH
    assert fields.alert_time is AlertTime.BEFORE_COMPLETION
    assert fields.notes is None


def test_defaults() -> None:
    fields = _valid(duration=10)
    assert fields.priority is Priority.MEDIUM
    assert fields.alert_time is AlertTime.AT_START


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"name": "   "}, "name"),
        ({"date_str": "05/01/2026"}, "date"),
        ({"date_str": "2026-02-30"}, "date"),
        ({"date_str": "2026-W02-1"}, "date"),
        ({"start_time": "6pm"}, "start_time"),
        ({"start_time": "24:00"}, "start_time"),
        ({"duration": "0"}, "duration"),
        ({"duration": "-15"}, "duration"),
        ({"duration": "1.5"}, "duration"),
        ({"duration": True}, "duration"),
        ({"priority": "Urgent"}, "priority"),
        ({"alert_time": "never"}, "alert_time"),
    ],
)
def test_invalid_input_names_the_field(overrides: dict, field: str) -> None:
    with pytest.raises(ValidationError) as ei:
        _valid(**overrides)
    assert ei.value.field == field

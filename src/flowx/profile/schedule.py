# src/flowx/profile/schedule.py

from __future__ import annotations

from datetime import date, time

from .profile_models import DAYS_OF_WEEK, ExtraWorkHour, UserProfile, Weekday


def weekday_of(day: date) -> Weekday:
    return DAYS_OF_WEEK[day.weekday()]


def is_work_day(profile: UserProfile, day: date) -> bool:
    return weekday_of(day) in profile.working_days


def has_work_hours_conflict(start: time, window_start: time, window_end: time) -> bool:
    """True when start falls inside [window_start, window_end). Advisory only."""
    return window_start <= start < window_end


def extra_hours_for(profile: UserProfile, day: date) -> list[ExtraWorkHour]:
    wd = weekday_of(day)
    return sorted((e for e in profile.extra_hours if e.day is wd), key=lambda e: e.hours.start)

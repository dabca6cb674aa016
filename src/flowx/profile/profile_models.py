# src/flowx/profile/profile_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import time
from enum import StrEnum
from typing import Any

from ..core.errors import ParseError, ValidationError
from ..tasks.task_models import format_hhmm, parse_hhmm


class Weekday(StrEnum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def parse(cls, raw: str) -> Weekday:
        """Accept full names or 3-letter prefixes, any case ("mon", "Monday")."""
        s = (raw or "").strip().lower()
        for d in cls:
            if s == d.value.lower() or (len(s) >= 3 and d.value.lower().startswith(s)):
                return d
        raise ValueError(f"unknown weekday: {raw!r}")


# Index matches date.weekday() (Monday == 0).
DAYS_OF_WEEK: tuple[Weekday, ...] = tuple(Weekday)

WORK_WEEK: frozenset[Weekday] = frozenset(DAYS_OF_WEEK[:5])


class Profession(StrEnum):
    STUDENT = "Student"
    EMPLOYEE = "Employee"
    DOCTOR = "Doctor"
    WORKER = "Worker"
    FREELANCER = "Freelancer"
    BUSINESS_OWNER = "Business Owner"
    OTHER = "Other"


@dataclass(frozen=True, slots=True)
class WorkingHours:
    """Same-day window [start, end); start must precede end."""

    start: time
    end: time

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise ValidationError(
                "working_hours",
                f"start {format_hhmm(self.start)} must be before end {format_hhmm(self.end)}",
            )

    @classmethod
    def parse(cls, start: str, end: str) -> WorkingHours:
        try:
            return cls(parse_hhmm(start), parse_hhmm(end))
        except ValueError as e:
            raise ValidationError("working_hours", str(e)) from None

    def to_dict(self) -> dict[str, str]:
        return {"start": format_hhmm(self.start), "end": format_hhmm(self.end)}


DEFAULT_WORKING_HOURS = WorkingHours(time(9, 0), time(17, 0))


@dataclass(frozen=True, slots=True)
class ExtraWorkHour:
    day: Weekday
    hours: WorkingHours
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "day": self.day.value, **self.hours.to_dict()}


@dataclass(frozen=True, slots=True)
class UserProfile:
    username: str
    profession: Profession = Profession.STUDENT
    custom_profession: str | None = None
    working_days: frozenset[Weekday] = WORK_WEEK
    regular_hours: WorkingHours = DEFAULT_WORKING_HOURS
    extra_hours: tuple[ExtraWorkHour, ...] = ()
    onboarding_complete: bool = False

    @classmethod
    def default_for(cls, username: str) -> UserProfile:
        name = (username or "").strip()
        if not name:
            raise ValidationError("username", "is required")
        return cls(username=name)

    @property
    def display_profession(self) -> str:
        if self.profession is Profession.OTHER and self.custom_profession:
            return self.custom_profession
        return self.profession.value

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "username": self.username,
            "profession": self.profession.value,
            # Calendar order, not set order.
            "workingDays": [d.value for d in DAYS_OF_WEEK if d in self.working_days],
            "regularHours": self.regular_hours.to_dict(),
            "extraHours": [e.to_dict() for e in self.extra_hours],
            "onboardingComplete": self.onboarding_complete,
        }
        if self.custom_profession is not None:
            out["customProfession"] = self.custom_profession
        return out

    @classmethod
    def from_dict(cls, raw: Any) -> UserProfile:
        if not isinstance(raw, dict):
            raise ParseError("profile is not an object")
        try:
            username = raw["username"]
            if not isinstance(username, str) or not username.strip():
                raise ParseError("profile username missing")
            hours_raw = raw.get("regularHours") or {}
            extra: list[ExtraWorkHour] = []
            for e in raw.get("extraHours") or []:
                extra.append(
                    ExtraWorkHour(
                        id=str(e.get("id") or uuid.uuid4()),
                        day=Weekday.parse(e["day"]),
                        hours=WorkingHours.parse(e["start"], e["end"]),
                    )
                )
            custom = raw.get("customProfession")
            days_raw = raw.get("workingDays")
            return cls(
                username=username,
                profession=Profession(raw.get("profession") or Profession.STUDENT.value),
                custom_profession=str(custom) if custom is not None else None,
                working_days=(
                    frozenset(Weekday.parse(d) for d in days_raw) if days_raw is not None else WORK_WEEK
                ),
                regular_hours=(
                    WorkingHours.parse(hours_raw["start"], hours_raw["end"])
                    if hours_raw
                    else DEFAULT_WORKING_HOURS
                ),
                extra_hours=tuple(extra),
                onboarding_complete=bool(raw.get("onboardingComplete", False)),
            )
        except ParseError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError, ValidationError) as e:
            raise ParseError(f"malformed profile: {e}") from e


@dataclass(frozen=True, slots=True)
class OnboardingAnswers:
    """Answers collected by the onboarding flow; None means "keep the current value"."""

    profession: Profession | None = None
    custom_profession: str | None = None
    working_days: frozenset[Weekday] | None = None
    regular_hours: WorkingHours | None = None
    extra_hours: tuple[ExtraWorkHour, ...] | None = None


def complete_onboarding(profile: UserProfile, answers: OnboardingAnswers) -> UserProfile:
    """Merge answers into profile and mark onboarding complete (irrevocably)."""
    profession = answers.profession or profile.profession
    custom = answers.custom_profession if answers.custom_profession is not None else profile.custom_profession
    if profession is Profession.OTHER and not (custom or "").strip():
        raise ValidationError("custom_profession", "is required when profession is Other")

    return replace(
        profile,
        profession=profession,
        custom_profession=(custom or "").strip() or None,
        working_days=answers.working_days if answers.working_days is not None else profile.working_days,
        regular_hours=answers.regular_hours or profile.regular_hours,
        extra_hours=answers.extra_hours if answers.extra_hours is not None else profile.extra_hours,
        onboarding_complete=True,
    )

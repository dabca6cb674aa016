# tests/test_profile.py

from __future__ import annotations

from datetime import date, time

import pytest

from flowx.core.errors import ValidationError
from flowx.profile.profile_models import (
    WORK_WEEK,
    ExtraWorkHour,
    OnboardingAnswers,
    Profession,
    UserProfile,
    Weekday,
    WorkingHours,
    complete_onboarding,
)
from flowx.profile.profile_store import ProfileStore
from flowx.profile.schedule import extra_hours_for, has_work_hours_conflict, is_work_day, weekday_of
from flowx.storage.kv_store import STORAGE_KEY_USER, SqliteKeyValueStore

from .fakes import MONDAY, MemoryKeyValueStore


def test_default_profile() -> None:
    p = UserProfile.default_for("  ada ")
    assert p.username == "ada"
    assert p.profession is Profession.STUDENT
    assert p.working_days == WORK_WEEK
    assert p.regular_hours == WorkingHours(time(9, 0), time(17, 0))
    assert p.onboarding_complete is False


def test_blank_username_is_rejected() -> None:
    with pytest.raises(ValidationError):
        UserProfile.default_for("  ")


def test_working_hours_must_be_ordered() -> None:
    with pytest.raises(ValidationError):
        WorkingHours(time(17, 0), time(9, 0))
    with pytest.raises(ValidationError):
        WorkingHours.parse("09:00", "09:00")
    with pytest.raises(ValidationError):
        WorkingHours.parse("9am", "17:00")


def test_weekday_parse_accepts_prefixes() -> None:
    assert Weekday.parse("mon") is Weekday.MONDAY
    assert Weekday.parse("THURSDAY") is Weekday.THURSDAY
    with pytest.raises(ValueError):
        Weekday.parse("t")


def test_other_profession_requires_custom_label() -> None:
    p = UserProfile.default_for("ada")
    with pytest.raises(ValidationError):
        complete_onboarding(p, OnboardingAnswers(profession=Profession.OTHER))

    done = complete_onboarding(p, OnboardingAnswers(profession=Profession.OTHER, custom_profession=" Chef "))
    assert done.display_profession == "Chef"
    assert done.onboarding_complete is True


def test_schedule_helpers() -> None:
    sat = ExtraWorkHour(day=Weekday.SATURDAY, hours=WorkingHours.parse("14:00", "16:00"))
    sat_early = ExtraWorkHour(day=Weekday.SATURDAY, hours=WorkingHours.parse("08:00", "10:00"))
    p = UserProfile(username="ada", extra_hours=(sat, sat_early))
    saturday = date(2026, 1, 10)

    assert weekday_of(MONDAY) is Weekday.MONDAY
    assert is_work_day(p, MONDAY)
    assert not is_work_day(p, saturday)
    assert extra_hours_for(p, saturday) == [sat_early, sat]
    assert extra_hours_for(p, MONDAY) == []


def test_conflict_window_is_half_open() -> None:
    ws, we = time(9, 0), time(17, 0)
    assert has_work_hours_conflict(time(9, 0), ws, we)
    assert has_work_hours_conflict(time(16, 59), ws, we)
    assert not has_work_hours_conflict(time(17, 0), ws, we)
    assert not has_work_hours_conflict(time(8, 59), ws, we)


def test_store_login_and_onboarding_round_trip(storage: SqliteKeyValueStore) -> None:
    profiles = ProfileStore(storage)
    assert profiles.load() is None

    fresh = profiles.login("ada")
    assert fresh.onboarding_complete is False
    assert profiles.load() is None  # login alone does not persist

    extra = (ExtraWorkHour(day=Weekday.SATURDAY, hours=WorkingHours.parse("10:00", "12:00")),)
    done = profiles.complete_onboarding(
        fresh,
        OnboardingAnswers(
            profession=Profession.DOCTOR,
            working_days=frozenset({Weekday.TUESDAY, Weekday.WEDNESDAY}),
            regular_hours=WorkingHours.parse("07:00", "15:00"),
            extra_hours=extra,
        ),
    )

    again = ProfileStore(storage).login("ada")
    assert again == done
    assert again.onboarding_complete is True

    other = profiles.login("grace")
    assert other.username == "grace"
    assert other.onboarding_complete is False


def test_corrupt_profile_loads_as_missing() -> None:
    kv = MemoryKeyValueStore({STORAGE_KEY_USER: '{"username": "ada", "regularHours": {"start": "x"}}'})
    assert ProfileStore(kv).load() is None
    assert ProfileStore(MemoryKeyValueStore({STORAGE_KEY_USER: "nope"})).load() is None

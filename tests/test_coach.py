# tests/test_coach.py

from __future__ import annotations

import pytest

from flowx.core.errors import CollaboratorUnavailable
from flowx.llm.coach import (
    FEEDBACK_EMPTY_FALLBACK,
    FEEDBACK_FALLBACK,
    MAX_SUGGESTIONS,
    Coach,
    parse_suggestions,
)
from flowx.llm.offline import OfflineLLMClient
from flowx.profile.profile_models import Profession, UserProfile
from flowx.tasks.task_models import Priority, TaskStatus

from .fakes import FailingLLMClient, FakeLLMClient, SlowLLMClient, make_task


def test_parse_suggestions_strips_fence_and_caps_count() -> None:
    text = '```json\n["a", "b", "", "c", "d", "e", "f", "g"]\n```'
    assert parse_suggestions(text) == ["a", "b", "c", "d", "e"]
    assert len(parse_suggestions(text)) == MAX_SUGGESTIONS


def test_parse_suggestions_rejects_non_arrays() -> None:
    with pytest.raises(CollaboratorUnavailable):
        parse_suggestions("Here are some ideas: walk, read")
    with pytest.raises(CollaboratorUnavailable):
        parse_suggestions('{"tasks": []}')


def test_suggest_tasks_mentions_profession_and_degrades_to_empty() -> None:
    llm = FakeLLMClient('["Gym", "Groceries"]')
    profile = UserProfile(username="ada", profession=Profession.DOCTOR)

    assert Coach(llm).suggest_tasks(profile) == ["Gym", "Groceries"]
    messages, _ = llm.calls[0]
    assert "Doctor" in messages[0]["content"]

    assert Coach(FakeLLMClient("not json")).suggest_tasks(profile) == []
    assert Coach(FailingLLMClient()).suggest_tasks(profile) == []


def test_feedback_fallbacks() -> None:
    tasks = [make_task(name="Run", status=TaskStatus.COMPLETED), make_task(name="Read", status=TaskStatus.NOT_COMPLETED)]

    llm = FakeLLMClient("Solid day.")
    assert Coach(llm).motivational_feedback(67, tasks) == "Solid day."
    prompt = llm.calls[0][0][0]["content"]
    assert "67%" in prompt
    assert "Run" in prompt and "Read" in prompt

    assert Coach(FailingLLMClient()).motivational_feedback(0, tasks) == FEEDBACK_FALLBACK
    assert Coach(FakeLLMClient("   ")).motivational_feedback(0, tasks) == FEEDBACK_EMPTY_FALLBACK


def test_voice_reminder_fallbacks() -> None:
    task = make_task(name="Stretch", priority=Priority.LOW)
    assert Coach(FakeLLMClient("Time to stretch!")).voice_reminder_text(task) == "Time to stretch!"
    assert Coach(FailingLLMClient()).voice_reminder_text(task) == "Reminder: Stretch"
    assert Coach(FakeLLMClient("")).voice_reminder_text(task) == "Time to start your task: Stretch"


def test_offline_client_gives_usable_answers() -> None:
    coach = Coach(OfflineLLMClient())
    profile = UserProfile(username="ada")
    assert coach.suggest_tasks(profile) == []
    assert coach.voice_reminder_text(make_task(name="Walk")) == "Time to start your task: Walk"
    assert coach.motivational_feedback(50, [])


@pytest.mark.asyncio
async def test_fetch_day_insights_returns_both_answers() -> None:
    coach = Coach(FakeLLMClient('["Plan tomorrow"]'))
    feedback, suggestions = await coach.fetch_day_insights(80, [], UserProfile(username="ada"), timeout_seconds=2.0)
    assert feedback == '["Plan tomorrow"]'
    assert suggestions == ["Plan tomorrow"]


@pytest.mark.asyncio
async def test_fetch_day_insights_times_out_to_fallbacks() -> None:
    coach = Coach(SlowLLMClient(delay_seconds=0.5))
    feedback, suggestions = await coach.fetch_day_insights(
        80, [], UserProfile(username="ada"), timeout_seconds=0.05
    )
    assert feedback == FEEDBACK_FALLBACK
    assert suggestions == []

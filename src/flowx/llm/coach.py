# src/flowx/llm/coach.py

"""
AI coach: the text-generation collaborator.

Three request/response calls (suggestions, feedback, voice-reminder script).
Every call degrades to a fixed fallback instead of raising: the planner's
correctness never depends on the LLM answering, or answering in time.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Sequence

from ..core.errors import CollaboratorUnavailable
from ..core.ports import LLMClient
from ..profile.profile_models import UserProfile
from ..tasks.task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5

FEEDBACK_FALLBACK = "Great job focusing on your goals today!"
FEEDBACK_EMPTY_FALLBACK = "Keep up the great effort! Every small step counts towards better habits."

SUGGEST_SYSTEM_PROMPT = (
    "You are an AI time-management assistant. "
    "Answer with a JSON array of short strings and nothing else."
)
FEEDBACK_SYSTEM_PROMPT = (
    "You are a supportive, non-judgmental productivity coach. "
    "Keep answers brief (max 3 sentences) and focus on habit building."
)
REMINDER_SYSTEM_PROMPT = (
    "You write short, friendly spoken reminders. "
    "Keep them concise; they are read aloud by a text-to-speech engine."
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def reminder_fallback(task: Task) -> str:
    return f"Reminder: {task.name}"


def reminder_empty_fallback(task: Task) -> str:
    return f"Time to start your task: {task.name}"


def parse_suggestions(text: str) -> list[str]:
    """Parse a JSON array of strings (optionally wrapped in a Markdown fence)."""
    cleaned = _FENCE_RE.sub("", (text or "").strip()).strip()
    if not cleaned:
        return []
    try:
        data = json.loads(cleaned)
    except ValueError as e:
        raise CollaboratorUnavailable(f"suggestions are not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise CollaboratorUnavailable("suggestions are not a JSON array")
    out = [str(x).strip() for x in data if isinstance(x, str | int | float) and str(x).strip()]
    return out[:MAX_SUGGESTIONS]


class Coach:
    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    def _ask(self, prompt: str, system_prompt: str) -> str:
        try:
            return "".join(self._llm.stream_chat([{"role": "user", "content": prompt}], system_prompt)).strip()
        except Exception as e:
            raise CollaboratorUnavailable(str(e) or e.__class__.__name__) from e

    def suggest_tasks(self, profile: UserProfile) -> list[str]:
        prompt = (
            f"Suggest {MAX_SUGGESTIONS} common tasks for a {profile.display_profession} "
            "that typically occur outside of working hours. Return only a JSON array of strings."
        )
        try:
            return parse_suggestions(self._ask(prompt, SUGGEST_SYSTEM_PROMPT))
        except CollaboratorUnavailable as e:
            logger.warning("Task suggestions unavailable: %s", e)
            return []

    def motivational_feedback(self, score: int, tasks: Sequence[Task]) -> str:
        completed = ", ".join(t.name for t in tasks if t.status is TaskStatus.COMPLETED)
        late = ", ".join(t.name for t in tasks if t.status is TaskStatus.COMPLETED_LATE)
        missed = ", ".join(t.name for t in tasks if t.status is TaskStatus.NOT_COMPLETED)
        prompt = (
            f"Generate short feedback for a user who achieved a time-management score of {score}%.\n"
            f"Completed tasks: {completed or 'None'}.\n"
            f"Completed late: {late or 'None'}.\n"
            f"Missed tasks: {missed or 'None'}."
        )
        try:
            text = self._ask(prompt, FEEDBACK_SYSTEM_PROMPT)
        except CollaboratorUnavailable as e:
            logger.warning("Motivational feedback unavailable: %s", e)
            return FEEDBACK_FALLBACK
        return text or FEEDBACK_EMPTY_FALLBACK

    def voice_reminder_text(self, task: Task) -> str:
        prompt = f'Write a short, friendly reminder for the task "{task.name}".'
        try:
            text = self._ask(prompt, REMINDER_SYSTEM_PROMPT)
        except CollaboratorUnavailable as e:
            logger.warning("Voice reminder text unavailable task_id=%s: %s", task.id, e)
            return reminder_fallback(task)
        return text or reminder_empty_fallback(task)

    async def fetch_day_insights(
            self,
            score: int,
            tasks: Sequence[Task],
            profile: UserProfile,
            *,
            timeout_seconds: float = 20.0,
    ) -> tuple[str, list[str]]:
        """
        Feedback + suggestions fetched concurrently in worker threads.

        A call that does not finish within timeout_seconds is abandoned and its
        fallback used; the worker thread is left to finish on its own.
        """

        async def _bounded(fn, *args, fallback):
            try:
                return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=timeout_seconds)
            except TimeoutError:
                logger.warning("AI call %s timed out after %.1fs", fn.__name__, timeout_seconds)
                return fallback

        feedback, suggestions = await asyncio.gather(
            _bounded(self.motivational_feedback, score, list(tasks), fallback=FEEDBACK_FALLBACK),
            _bounded(self.suggest_tasks, profile, fallback=[]),
        )
        return feedback, suggestions

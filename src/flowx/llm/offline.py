# src/flowx/llm/offline.py

from __future__ import annotations

from collections.abc import Iterable

from ..core.ports import ChatMessage


class OfflineLLMClient:
    """
    Offline deterministic LLM client used when no external API is configured.

    Behavior:
    - Suggestion prompts -> an empty JSON array (no invented tasks)
    - Reminder prompts -> a plain "time to start" line
    - Anything else (feedback) -> a short neutral encouragement
    """

    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]:
        sp = (system_prompt or "").lower()
        user_text = ""
        for m in reversed(messages):
            if m["role"] == "user":
                user_text = m["content"]
                break

        if "json array" in sp:
            yield "[]"
            return

        if "reminder" in sp:
            name = user_text.split('"')[1] if user_text.count('"') >= 2 else "your task"
            yield f"Time to start your task: {name}"
            return

        yield "Offline mode: every finished task is a step forward. Keep going!"

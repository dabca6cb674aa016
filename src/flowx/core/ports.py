# src/flowx/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage/LLM providers/speech output swappable and makes testing easier.
"""

from collections.abc import Iterable
from datetime import date
from typing import Any, Protocol

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Streaming chat completion client (OpenAI/OpenRouter-compatible)."""
    def stream_chat(self, messages: list[ChatMessage], system_prompt: str) -> Iterable[str]: ...


class KeyValueStorage(Protocol):
    """
    Local key-value storage holding raw JSON strings.

    get() returns None for a missing key. Values are opaque to the storage;
    decoding (and recovering from bad JSON) is the caller's job.
    """

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> None: ...


class Speaker(Protocol):
    """Speech output used by voice reminders."""
    def speak(self, text: str) -> None: ...


class TaskRepo(Protocol):
    # Scoring API
    def list_tasks_for_date(self, day: date) -> list[Any]: ...
    def upsert_performance_record(self, record: Any) -> None: ...
    def list_performance_records(self) -> list[Any]: ...

    # Lifecycle API
    def get_task(self, task_id: str) -> Any: ...
    def update_task_status(self, task_id: str, new_status: Any) -> Any: ...

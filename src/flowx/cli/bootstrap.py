# src/flowx/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (storage/tasks/profile/LLM/speaker).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import LLMClient, Speaker
from ..core.state import AppState
from ..llm.client import OpenRouterLLMClient
from ..llm.coach import Coach
from ..llm.offline import OfflineLLMClient
from ..profile.profile_store import ProfileStore
from ..storage.kv_store import SqliteKeyValueStore
from ..tasks.task_store import TaskStore
from ..voice.speaker import ConsoleSpeaker
from ..voice.tts_speaker import TtsSpeaker

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.storage_db_path.parent.mkdir(parents=True, exist_ok=True)


def _build_speaker(settings) -> Speaker:
    # Heavy audio stack loads only when TTS_MODE is on.
    if getattr(settings, "tts_mode", False):
        return TtsSpeaker(settings)
    return ConsoleSpeaker()


def create_initial_state(*, settings=None, speaker: Speaker | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    llm_client: LLMClient
    try:
        llm_client = OpenRouterLLMClient(settings)
    except RuntimeError as e:
        logger.info("AI coach running offline: %s", e)
        llm_client = OfflineLLMClient()

    storage = SqliteKeyValueStore(settings.storage_db_path)

    state = AppState(
        settings=settings,
        storage=storage,
        task_store=TaskStore(storage),
        profile_store=ProfileStore(storage),
        coach=Coach(llm_client),
        speaker=speaker or _build_speaker(settings),
    )

    stored = state.profile_store.load()
    if stored is not None:
        logger.info("Stored profile found for username=%s (use /login to continue).", stored.username)
    return state

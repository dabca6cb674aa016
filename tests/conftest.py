# tests/conftest.py

from __future__ import annotations

from datetime import datetime, time
from pathlib import Path
from types import SimpleNamespace

import pytest

from flowx.core.planner import Planner
from flowx.core.state import AppState
from flowx.llm.coach import Coach
from flowx.profile.profile_models import Profession, UserProfile
from flowx.profile.profile_store import ProfileStore
from flowx.storage.kv_store import SqliteKeyValueStore
from flowx.tasks.task_store import TaskStore

from .fakes import MONDAY, FakeClock, FakeLLMClient, RecordingSpeaker


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment / .env.
    """
    return SimpleNamespace(
        app_name="flow-x-test",
        data_dir=tmp_path,
        storage_db_path=tmp_path / "flowx.sqlite3",
        late_credit=0.5,
        countdown_interval_seconds=0.01,
        ai_timeout_seconds=1.0,
        llm_models=[],
    )


@pytest.fixture()
def storage(settings: SimpleNamespace) -> SqliteKeyValueStore:
    # Real SQLite on purpose: persistence is part of what we test.
    return SqliteKeyValueStore(settings.storage_db_path)


@pytest.fixture()
def store(storage: SqliteKeyValueStore) -> TaskStore:
    return TaskStore(storage)


@pytest.fixture()
def profile() -> UserProfile:
    return UserProfile(username="ada", profession=Profession.EMPLOYEE, onboarding_complete=True)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime.combine(MONDAY, time(8, 0)))


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient("Nice work today!")


@pytest.fixture()
def speaker() -> RecordingSpeaker:
    return RecordingSpeaker()


@pytest.fixture()
def planner(store: TaskStore, profile: UserProfile, llm: FakeLLMClient, speaker: RecordingSpeaker, clock: FakeClock) -> Planner:
    return Planner(store, profile, Coach(llm), speaker, clock=clock)


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    storage: SqliteKeyValueStore,
    llm: FakeLLMClient,
    speaker: RecordingSpeaker,
    clock: FakeClock,
) -> AppState:
    """AppState wired with deterministic fakes (no profile logged in yet)."""
    return AppState(
        settings=settings,
        storage=storage,
        task_store=TaskStore(storage),
        profile_store=ProfileStore(storage),
        coach=Coach(llm),
        speaker=speaker,
        clock=clock,
    )

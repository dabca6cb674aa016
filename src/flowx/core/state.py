# src/flowx/core/state.py

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..llm.coach import Coach
from ..profile.profile_models import OnboardingAnswers, UserProfile
from ..profile.profile_store import ProfileStore
from ..tasks.scoring import ScoringPolicy
from ..tasks.task_store import TaskStore
from .planner import Planner
from .ports import KeyValueStorage, Speaker

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    # Settings stay on the state for easy access in connectors/commands.
    settings: Any

    storage: KeyValueStorage
    task_store: TaskStore
    profile_store: ProfileStore
    coach: Coach
    speaker: Speaker

    profile: UserProfile | None = None
    planner: Planner | None = None
    suggestions: list[str] = field(default_factory=list)
    clock: Callable[[], datetime] = datetime.now

    @property
    def policy(self) -> ScoringPolicy:
        return ScoringPolicy(late_credit=float(getattr(self.settings, "late_credit", 0.5)))

    def _start_planner(self) -> None:
        assert self.profile is not None
        self.planner = Planner(
            self.task_store, self.profile, self.coach, self.speaker, policy=self.policy, clock=self.clock
        )

    def login(self, username: str) -> UserProfile:
        self.profile = self.profile_store.login(username)
        self.planner = None
        self.suggestions = []
        if self.profile.onboarding_complete:
            self._start_planner()
        return self.profile

    def logout(self) -> None:
        if self.profile is not None:
            logger.info("Logout username=%s", self.profile.username)
        self.profile = None
        self.planner = None
        self.suggestions = []

    def complete_onboarding(self, answers: OnboardingAnswers) -> UserProfile:
        if self.profile is None:
            raise RuntimeError("complete_onboarding() requires a logged-in user")
        self.profile = self.profile_store.complete_onboarding(self.profile, answers)
        self._start_planner()
        return self.profile

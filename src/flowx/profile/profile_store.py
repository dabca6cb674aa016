# src/flowx/profile/profile_store.py

from __future__ import annotations

import logging

from ..core.errors import ParseError
from ..core.ports import KeyValueStorage
from ..storage.kv_store import STORAGE_KEY_USER, read_json, write_json
from .profile_models import OnboardingAnswers, UserProfile, complete_onboarding

logger = logging.getLogger(__name__)


class ProfileStore:
    """
    Single local user profile.

    Only one profile is kept at a time; logging in as somebody else yields a
    fresh default profile that replaces the stored one once onboarding completes.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage

    def load(self) -> UserProfile | None:
        raw = read_json(self._storage, STORAGE_KEY_USER, default=None)
        if raw is None:
            return None
        try:
            return UserProfile.from_dict(raw)
        except ParseError as e:
            logger.warning("Stored profile is unreadable; ignoring it: %s", e)
            return None

    def save(self, profile: UserProfile) -> None:
        write_json(self._storage, STORAGE_KEY_USER, profile.to_dict())
        logger.info("Profile saved username=%s onboarding_complete=%s", profile.username, profile.onboarding_complete)

    def login(self, username: str) -> UserProfile:
        """Stored profile if it belongs to username, otherwise a default (not persisted yet)."""
        fresh = UserProfile.default_for(username)
        stored = self.load()
        if stored is not None and stored.username == fresh.username:
            logger.info("Login username=%s (existing profile)", fresh.username)
            return stored
        logger.info("Login username=%s (new profile)", fresh.username)
        return fresh

    def complete_onboarding(self, profile: UserProfile, answers: OnboardingAnswers) -> UserProfile:
        done = complete_onboarding(profile, answers)
        self.save(done)
        return done

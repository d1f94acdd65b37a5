from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Tuple

from questarena_core.domain.models.QuestModel import Quest, QuestType
from questarena_core.domain.models.UserProfileModel import QuestCompletion, UserProfile
from questarena_core.services import rewards
from questarena_core.utils.locks import KeyedLocks


class UserProfileStore:
    """Lazily-created user profiles plus the append-only completion history."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._profiles: Dict[str, UserProfile] = {}
        self._history: List[QuestCompletion] = []
        self._history_lock = threading.Lock()
        self._locks = KeyedLocks()

    def _get_or_create_locked(self, user_id: str) -> UserProfile:
        profile = self._profiles.get(user_id)
        if profile is None:
            profile = UserProfile(user_id=user_id, last_active=self._clock())
            self._profiles[user_id] = profile
        return profile

    def get_or_create(self, user_id: str) -> UserProfile:
        with self._locks.hold(user_id):
            return self._get_or_create_locked(user_id)

    def record_join(self, user_id: str, quest_type: QuestType) -> UserProfile:
        with self._locks.hold(user_id):
            profile = self._get_or_create_locked(user_id)
            profile = replace(
                profile,
                preferences=profile.preferences | {quest_type},
                last_active=self._clock(),
            )
            self._profiles[user_id] = profile
            return profile

    def record_completion(
        self, user_id: str, quest: Quest, result: Any
    ) -> Tuple[UserProfile, QuestCompletion]:
        with self._locks.hold(user_id):
            profile = self._get_or_create_locked(user_id)
            updated, completion = rewards.apply(profile, quest, result, self._clock())
            self._profiles[user_id] = updated
        with self._history_lock:
            self._history.append(completion)
        return updated, completion

    def history(self, user_id: str | None = None) -> List[QuestCompletion]:
        with self._history_lock:
            records = list(self._history)
        if user_id is None:
            return records
        return [c for c in records if c.participant_id == user_id]

    def leaderboard(self, limit: int = 10) -> List[UserProfile]:
        profiles = list(self._profiles.values())
        return sorted(profiles, key=lambda p: p.xp, reverse=True)[: max(limit, 0)]

from __future__ import annotations

from typing import Any

from questarena_core.domain.errors import QuestNotFound
from questarena_core.domain.models.UserProfileModel import QuestCompletion
from questarena_core.services.event_broadcaster import Event, EventBroadcaster, EventType
from questarena_core.services.miniapp_manager import MiniAppLifecycleManager
from questarena_core.services.profile_store import UserProfileStore
from questarena_core.services.quest_registry import QuestRegistry
from questarena_core.utils.locks import KeyedLocks
from questarena_core.utils.logging import get_logger

logger = get_logger(__name__)


class ParticipationController:
    """Applies join/leave/complete requests and their side effects.

    Registry mutation and the mini-app mirror update happen under the same
    per-quest lock so the mirror never observes a different order of
    joins and leaves than the registry.
    """

    def __init__(
        self,
        registry: QuestRegistry,
        profiles: UserProfileStore,
        broadcaster: EventBroadcaster,
        mini_apps: MiniAppLifecycleManager,
    ) -> None:
        self._registry = registry
        self._profiles = profiles
        self._broadcaster = broadcaster
        self._mini_apps = mini_apps
        self._locks = KeyedLocks()

    def _require(self, quest_id: str) -> str:
        key = str(quest_id)
        if key not in self._registry:
            raise QuestNotFound(key)
        return key

    def join(self, quest_id: str, user_id: str) -> bool:
        with self._locks.hold(self._require(quest_id)):
            added, quest = self._registry.add_participant(quest_id, user_id)
            if not added:
                return False
            self._mini_apps.add_participant(quest_id, user_id)

        self._profiles.record_join(user_id, quest.type)
        logger.structured(
            "participant_joined",
            quest_id=str(quest.quest_id),
            user_id=user_id,
            participants=len(quest.participants),
        )
        self._broadcaster.publish(
            Event(
                EventType.PARTICIPANT_JOINED,
                {"questId": str(quest.quest_id), "userId": user_id, "quest": quest},
            )
        )
        return True

    def leave(self, quest_id: str, user_id: str) -> bool:
        with self._locks.hold(self._require(quest_id)):
            removed, quest = self._registry.remove_participant(quest_id, user_id)
            if not removed:
                return False
            self._mini_apps.remove_participant(quest_id, user_id)

        logger.structured("participant_left", quest_id=str(quest.quest_id), user_id=user_id)
        self._broadcaster.publish(
            Event(
                EventType.PARTICIPANT_LEFT,
                {"questId": str(quest.quest_id), "userId": user_id, "quest": quest},
            )
        )
        return True

    def complete(self, quest_id: str, user_id: str, result: Any = None) -> QuestCompletion:
        """Complete the quest for everyone; only ``user_id`` is rewarded.

        Preconditions are checked by the registry before any profile is
        touched, so a rejected completion leaves no partial rewards.
        """

        with self._locks.hold(self._require(quest_id)):
            quest = self._registry.complete(quest_id, user_id)
            self._mini_apps.close(quest_id)

        profile, completion = self._profiles.record_completion(user_id, quest, result)
        logger.structured(
            "quest_completed",
            quest_id=completion.quest_id,
            user_id=user_id,
            xp=profile.xp,
            level=profile.level,
        )
        self._broadcaster.publish(
            Event(
                EventType.QUEST_COMPLETED,
                {"completion": completion, "quest": quest, "profile": profile},
            )
        )
        return completion

from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from questarena_core.domain.errors import NotAParticipant, QuestNotFound
from questarena_core.domain.models.EntityIDModel import QuestID
from questarena_core.domain.models.QuestModel import Quest, QuestDefinition
from questarena_core.utils.locks import KeyedLocks
from questarena_core.utils.logging import get_logger

logger = get_logger(__name__)


class QuestRegistry:
    """Authoritative in-memory table of quests.

    Active quests live in the active index; once a quest completes or
    expires it moves to history and is still readable through :meth:`get`.
    Every mutation holds the quest's own lock, so writers serialize per
    quest id and different quests never contend. Readers always receive
    copies.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._active: Dict[str, Quest] = {}
        self._history: Dict[str, Quest] = {}
        self._index_lock = threading.Lock()
        self._locks = KeyedLocks()

    # ------- Internal -------

    def _lookup(self, quest_id: str) -> Quest:
        key = str(quest_id)
        with self._index_lock:
            quest = self._active.get(key) or self._history.get(key)
        if quest is None:
            raise QuestNotFound(key)
        return quest

    def _retire(self, quest: Quest) -> None:
        key = str(quest.quest_id)
        with self._index_lock:
            self._active.pop(key, None)
            self._history[key] = quest

    # ------- Creation / reads -------

    def create(
        self,
        definition: QuestDefinition,
        conversation_id: str,
        persona: Optional[str] = None,
    ) -> Quest:
        quest = Quest.from_definition(
            definition, conversation_id, created_at=self._clock(), persona=persona
        )
        key = str(quest.quest_id)
        with self._index_lock:
            while key in self._active or key in self._history:
                quest.quest_id = QuestID.generate()
                key = str(quest.quest_id)
            self._active[key] = quest
        logger.structured(
            "quest_created",
            quest_id=key,
            conversation_id=conversation_id,
            type=quest.type.value,
            expires_at=quest.expires_at.isoformat(),
        )
        return copy.deepcopy(quest)

    def __contains__(self, quest_id: object) -> bool:
        key = str(quest_id)
        with self._index_lock:
            return key in self._active or key in self._history

    def get(self, quest_id: str) -> Optional[Quest]:
        try:
            quest = self._lookup(quest_id)
        except QuestNotFound:
            return None
        with self._locks.hold(str(quest.quest_id)):
            return copy.deepcopy(quest)

    def list_active(self, conversation_id: Optional[str] = None) -> List[Quest]:
        with self._index_lock:
            quests = list(self._active.values())
        result = []
        for quest in quests:
            with self._locks.hold(str(quest.quest_id)):
                if not quest.is_active:
                    continue
                if conversation_id is not None and quest.conversation_id != conversation_id:
                    continue
                result.append(copy.deepcopy(quest))
        return sorted(result, key=lambda q: q.created_at)

    def has_active(self, conversation_id: str) -> bool:
        with self._index_lock:
            quests = list(self._active.values())
        return any(q.is_active and q.conversation_id == conversation_id for q in quests)

    def all_quests(self) -> List[Quest]:
        with self._index_lock:
            quests = list(self._active.values()) + list(self._history.values())
        return [copy.deepcopy(q) for q in quests]

    # ------- Mutations -------

    def add_participant(self, quest_id: str, user_id: str) -> tuple[bool, Quest]:
        quest = self._lookup(quest_id)
        with self._locks.hold(str(quest.quest_id)):
            added = quest.add_participant(user_id)
            return added, copy.deepcopy(quest)

    def remove_participant(self, quest_id: str, user_id: str) -> tuple[bool, Quest]:
        quest = self._lookup(quest_id)
        with self._locks.hold(str(quest.quest_id)):
            removed = quest.remove_participant(user_id)
            return removed, copy.deepcopy(quest)

    def complete(self, quest_id: str, user_id: str, now: datetime | None = None) -> Quest:
        """Transition an active quest to completed on behalf of a participant.

        Raises ``NotAParticipant`` or ``QuestNotActive`` without touching
        state; only the caller that wins the transition gets a quest back.
        """

        quest = self._lookup(quest_id)
        with self._locks.hold(str(quest.quest_id)):
            if not quest.has_participant(user_id):
                raise NotAParticipant(quest.quest_id, user_id)
            quest.set_completed(now or self._clock())
            self._retire(quest)
            return copy.deepcopy(quest)

    def expire_due(self, now: datetime | None = None) -> List[Quest]:
        """Expire every active quest whose deadline has passed.

        Each quest is returned by at most one call, ever.
        """

        now = now or self._clock()
        with self._index_lock:
            candidates = list(self._active.values())

        expired: List[Quest] = []
        for quest in candidates:
            with self._locks.hold(str(quest.quest_id)):
                if not quest.is_due(now):
                    continue
                quest.set_expired(now)
                self._retire(quest)
                expired.append(copy.deepcopy(quest))

        if expired:
            logger.structured(
                "quests_expired",
                count=len(expired),
                quest_ids=[str(q.quest_id) for q in expired],
            )
        return expired

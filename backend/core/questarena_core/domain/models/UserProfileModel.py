from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, FrozenSet, Optional

from questarena_core.domain.models.QuestModel import QuestRewards, QuestType

XP_PER_LEVEL = 100


def level_for_xp(xp: int) -> int:
    return xp // XP_PER_LEVEL + 1


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    xp: int = 0
    social_score: int = 0
    completed_quest_ids: FrozenSet[str] = field(default_factory=frozenset)
    preferences: FrozenSet[QuestType] = field(default_factory=frozenset)
    last_active: Optional[datetime] = None

    # level is derived so it can never drift from xp
    @property
    def level(self) -> int:
        return level_for_xp(self.xp)

    @property
    def quests_completed(self) -> int:
        return len(self.completed_quest_ids)


@dataclass(frozen=True)
class QuestCompletion:
    quest_id: str
    participant_id: str
    completed_at: datetime
    result: Any
    rewards: QuestRewards
    new_level: int

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Tuple

from questarena_core.domain.models.QuestModel import Difficulty, Quest, QuestType
from questarena_core.domain.models.UserProfileModel import (
    QuestCompletion,
    UserProfile,
    level_for_xp,
)

BASE_SOCIAL_SCORE = 5

TYPE_BONUS: Dict[QuestType, int] = {
    QuestType.COMMUNITY_BUILDING: 10,
    QuestType.SOCIAL_CHALLENGE: 8,
    QuestType.CROSS_PROTOCOL: 9,
    QuestType.CREATIVE_CONTEST: 7,
    QuestType.KNOWLEDGE_QUEST: 6,
}

DIFFICULTY_BONUS: Dict[Difficulty, int] = {
    Difficulty.EXPERT: 15,
    Difficulty.HARD: 10,
    Difficulty.MEDIUM: 5,
    Difficulty.EASY: 2,
}


def social_score_increase(quest: Quest) -> int:
    return BASE_SOCIAL_SCORE + TYPE_BONUS[quest.type] + DIFFICULTY_BONUS[quest.difficulty]


def apply(
    profile: UserProfile, quest: Quest, result: Any, completed_at: datetime
) -> Tuple[UserProfile, QuestCompletion]:
    """Fold one completion into a profile. Pure: inputs are never mutated."""

    xp = profile.xp + quest.rewards.xp
    updated = replace(
        profile,
        xp=xp,
        social_score=profile.social_score + social_score_increase(quest),
        completed_quest_ids=profile.completed_quest_ids | {str(quest.quest_id)},
        last_active=completed_at,
    )
    completion = QuestCompletion(
        quest_id=str(quest.quest_id),
        participant_id=profile.user_id,
        completed_at=completed_at,
        result=result,
        # frozen copy so later quest edits never leak into history
        rewards=replace(quest.rewards, badges=list(quest.rewards.badges)),
        new_level=level_for_xp(xp),
    )
    return updated, completion

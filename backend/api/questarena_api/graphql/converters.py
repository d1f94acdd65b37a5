# questarena_api/graphql/converters.py
"""
Converters between domain models and GraphQL types.
"""
from __future__ import annotations

from typing import Optional

from questarena_api.graphql.types import (
    Difficulty,
    ParticipantLimits,
    Quest,
    QuestCompletion,
    QuestStatus,
    QuestType,
    Rewards,
    UserStats,
)
from questarena_core.domain.models.QuestModel import Quest as DQuest
from questarena_core.domain.models.QuestModel import QuestRewards as DRewards
from questarena_core.domain.models.UserProfileModel import QuestCompletion as DCompletion
from questarena_core.domain.models.UserProfileModel import UserProfile as DProfile


def _rewards(r: DRewards) -> Rewards:
    return Rewards(xp=r.xp, tokens=r.tokens, badges=list(r.badges))


def domain_quest_to_gql(q: DQuest, mini_app_url: Optional[str] = None) -> Quest:
    return Quest(
        quest_id=str(q.quest_id),
        conversation_id=q.conversation_id,
        quest_master=q.persona,
        type=QuestType(q.type.value),
        title=q.title,
        description=q.description,
        difficulty=Difficulty(q.difficulty.value),
        duration_minutes=q.duration_minutes,
        requirements=list(q.requirements),
        participant_limits=ParticipantLimits(
            min=q.participant_limits.min, max=q.participant_limits.max
        ),
        rewards=_rewards(q.rewards),
        status=QuestStatus(q.status.value),
        created_at=q.created_at,
        expires_at=q.expires_at,
        ended_at=q.ended_at,
        participants=list(q.participants),
        mini_app_url=mini_app_url,
    )


def domain_profile_to_gql(p: DProfile) -> UserStats:
    return UserStats(
        user_id=p.user_id,
        level=p.level,
        xp=p.xp,
        social_score=p.social_score,
        quests_completed=p.quests_completed,
        preferences=sorted((QuestType(t.value) for t in p.preferences), key=lambda t: t.value),
        last_active=p.last_active,
    )


def domain_completion_to_gql(c: DCompletion) -> QuestCompletion:
    return QuestCompletion(
        quest_id=c.quest_id,
        participant_id=c.participant_id,
        completed_at=c.completed_at,
        rewards=_rewards(c.rewards),
        new_level=c.new_level,
    )

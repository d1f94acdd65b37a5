# questarena_api/graphql/types.py
"""
Strawberry GraphQL type definitions.
These types mirror the domain models and API schemas.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

import strawberry


# =============================================================================
# Enums
# =============================================================================

@strawberry.enum
class QuestType(Enum):
    SOCIAL_CHALLENGE = "social_challenge"
    KNOWLEDGE_QUEST = "knowledge_quest"
    CREATIVE_CONTEST = "creative_contest"
    COMMUNITY_BUILDING = "community_building"
    CROSS_PROTOCOL = "cross_protocol"


@strawberry.enum
class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


@strawberry.enum
class QuestStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


# =============================================================================
# Quest Types
# =============================================================================

@strawberry.type
class ParticipantLimits:
    min: int
    max: int


@strawberry.type
class Rewards:
    xp: int
    tokens: Optional[float] = None
    badges: List[str] = strawberry.field(default_factory=list)


@strawberry.type
class Quest:
    """A timed, capacity-bounded challenge bound to one conversation."""
    quest_id: str
    conversation_id: str
    quest_master: Optional[str]
    type: QuestType
    title: str
    description: str
    difficulty: Difficulty
    duration_minutes: int
    requirements: List[str]
    participant_limits: ParticipantLimits
    rewards: Rewards
    status: QuestStatus
    created_at: datetime
    expires_at: datetime
    ended_at: Optional[datetime]
    participants: List[str]
    mini_app_url: Optional[str] = None


# =============================================================================
# User Types
# =============================================================================

@strawberry.type
class UserStats:
    user_id: str
    level: int
    xp: int
    social_score: int
    quests_completed: int
    preferences: List[QuestType]
    last_active: Optional[datetime] = None


@strawberry.type
class QuestCompletion:
    quest_id: str
    participant_id: str
    completed_at: datetime
    rewards: Rewards
    new_level: int

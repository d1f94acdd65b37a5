from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

# --- Shared Types ---
QuestType = Literal[
    "social_challenge",
    "knowledge_quest",
    "creative_contest",
    "community_building",
    "cross_protocol",
]
Difficulty = Literal["easy", "medium", "hard", "expert"]
QuestStatus = Literal["active", "completed", "expired"]
MiniAppType = Literal["dashboard", "game", "poll", "leaderboard", "gallery"]
MiniAppStatus = Literal["active", "expired"]


# --- Quests ---
class ParticipantLimits(BaseModel):
    min: int
    max: int


class Rewards(BaseModel):
    xp: int = 0
    tokens: Optional[float] = None
    badges: List[str] = Field(default_factory=list)


class MiniAppConfig(BaseModel):
    type: MiniAppType = "dashboard"
    config: Dict[str, Any] = Field(default_factory=dict)


class Quest(BaseModel):
    quest_id: str
    conversation_id: str
    quest_master: Optional[str] = None
    type: QuestType
    title: str
    description: str
    difficulty: Difficulty
    duration_minutes: int
    requirements: List[str] = Field(default_factory=list)
    participant_limits: ParticipantLimits
    rewards: Rewards
    mini_app_config: MiniAppConfig
    status: QuestStatus
    created_at: datetime
    expires_at: datetime
    ended_at: Optional[datetime] = None
    participants: List[str] = Field(default_factory=list)


class QuestList(BaseModel):
    quests: List[Quest]
    count: int


class ParticipationIn(BaseModel):
    user_id: str = Field(min_length=1)


class CompletionIn(ParticipationIn):
    result: Any = None


class ParticipationOut(BaseModel):
    success: bool
    quest: Quest


class TriggerIn(BaseModel):
    conversation_id: str = Field(min_length=1)
    quest_master: Optional[str] = None


class TriggerOut(BaseModel):
    success: bool = True
    quest: Quest
    message: str = "Quest created successfully"


# --- Users ---
class UserStats(BaseModel):
    user_id: str
    level: int
    xp: int
    social_score: int
    quests_completed: int
    completed_quest_ids: List[str] = Field(default_factory=list)
    preferences: List[QuestType] = Field(default_factory=list)
    last_active: Optional[datetime] = None


class QuestCompletion(BaseModel):
    quest_id: str
    participant_id: str
    completed_at: datetime
    result: Any = None
    rewards: Rewards
    new_level: int


# --- Mini apps ---
class MiniApp(BaseModel):
    quest_id: str
    conversation_id: str
    url: str
    type: MiniAppType
    status: MiniAppStatus
    config: Dict[str, Any] = Field(default_factory=dict)
    participants: List[str] = Field(default_factory=list)
    launched_at: datetime
    expires_at: datetime
    closed_at: Optional[datetime] = None


class ErrorBody(BaseModel):
    kind: str
    message: str

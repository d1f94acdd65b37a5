from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from questarena_core.domain.errors import (
    InvalidQuestDefinition,
    QuestFull,
    QuestNotActive,
)
from questarena_core.domain.models.EntityIDModel import QuestID


class QuestType(Enum):
    SOCIAL_CHALLENGE = "social_challenge"
    KNOWLEDGE_QUEST = "knowledge_quest"
    CREATIVE_CONTEST = "creative_contest"
    COMMUNITY_BUILDING = "community_building"
    CROSS_PROTOCOL = "cross_protocol"


class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


class QuestStatus(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


class MiniAppType(Enum):
    DASHBOARD = "dashboard"
    GAME = "game"
    POLL = "poll"
    LEADERBOARD = "leaderboard"
    GALLERY = "gallery"


@dataclass(frozen=True)
class ParticipantLimits:
    min: int = 1
    max: int = 1


@dataclass(frozen=True)
class QuestRewards:
    xp: int = 0
    tokens: Optional[float] = None
    badges: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MiniAppConfig:
    type: MiniAppType = MiniAppType.DASHBOARD
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass
class QuestDefinition:
    """A proposed quest as returned by a proposer, before registration."""

    type: QuestType
    title: str
    description: str
    difficulty: Difficulty
    duration_minutes: int
    participant_limits: ParticipantLimits
    rewards: QuestRewards = field(default_factory=QuestRewards)
    requirements: List[str] = field(default_factory=list)
    mini_app_config: MiniAppConfig = field(default_factory=MiniAppConfig)

    def validate(self) -> None:
        limits = self.participant_limits
        if limits.max < 1:
            raise InvalidQuestDefinition("participant max must be at least 1")
        if limits.min < 1:
            raise InvalidQuestDefinition("participant min must be at least 1")
        if limits.max < limits.min:
            raise InvalidQuestDefinition(
                f"participant max ({limits.max}) is below min ({limits.min})"
            )
        if self.duration_minutes <= 0:
            raise InvalidQuestDefinition("duration must be a positive number of minutes")
        if self.rewards.xp < 0:
            raise InvalidQuestDefinition("xp reward cannot be negative")
        tokens = self.rewards.tokens
        if tokens is not None and not isinstance(tokens, (int, float)):
            raise InvalidQuestDefinition("token reward must be a number")
        if tokens is not None and tokens < 0:
            raise InvalidQuestDefinition("token reward cannot be negative")
        if not (self.title or "").strip():
            raise InvalidQuestDefinition("title is required")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> QuestDefinition:
        """Build a definition from a loosely-typed proposer payload.

        Accepts both snake_case keys and the camelCase keys used by JSON
        producers (``participantLimits``, ``miniAppConfig``, ``duration``).
        """

        if not isinstance(data, Mapping):
            raise InvalidQuestDefinition(
                f"quest proposal must be an object, got {type(data).__name__}"
            )
        limits = _section(data, "participant_limits", "participantLimits")
        rewards = _section(data, "rewards")
        mini_app = _section(data, "mini_app_config", "miniAppConfig")
        try:
            duration = data.get("duration_minutes", data.get("duration"))
            tokens = rewards.get("tokens")
            return cls(
                type=QuestType(data["type"]),
                title=str(data["title"]),
                description=str(data.get("description") or ""),
                difficulty=Difficulty(data.get("difficulty", "medium")),
                duration_minutes=int(duration),
                participant_limits=ParticipantLimits(
                    min=int(limits.get("min", 1)), max=int(limits.get("max", 1))
                ),
                rewards=QuestRewards(
                    xp=int(rewards.get("xp", 0)),
                    tokens=float(tokens) if tokens is not None else None,
                    badges=list(rewards.get("badges") or []),
                ),
                requirements=list(data.get("requirements") or []),
                mini_app_config=MiniAppConfig(
                    type=MiniAppType(mini_app.get("type", "dashboard")),
                    config=dict(mini_app.get("config") or {}),
                ),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise InvalidQuestDefinition(f"malformed quest proposal: {exc}") from exc


def _section(data: Mapping[str, Any], *keys: str) -> Mapping[str, Any]:
    """First present nested object under any of ``keys``; empty if none."""
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, Mapping):
            raise InvalidQuestDefinition(
                f"{key} must be an object, got {type(value).__name__}"
            )
        return value
    return {}


@dataclass
class Quest:
    # Identity
    quest_id: QuestID
    conversation_id: str
    persona: Optional[str] = None

    # Metadata
    type: QuestType = QuestType.SOCIAL_CHALLENGE
    title: str = ""
    description: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    duration_minutes: int = 30
    requirements: List[str] = field(default_factory=list)
    participant_limits: ParticipantLimits = field(default_factory=ParticipantLimits)
    rewards: QuestRewards = field(default_factory=QuestRewards)
    mini_app_config: MiniAppConfig = field(default_factory=MiniAppConfig)

    # Lifecycle
    status: QuestStatus = QuestStatus.ACTIVE
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    participants: List[str] = field(default_factory=list)

    @classmethod
    def from_definition(
        cls,
        definition: QuestDefinition,
        conversation_id: str,
        created_at: datetime,
        persona: Optional[str] = None,
        quest_id: Optional[QuestID] = None,
    ) -> Quest:
        definition.validate()
        return cls(
            quest_id=quest_id or QuestID.generate(),
            conversation_id=conversation_id,
            persona=persona,
            type=definition.type,
            title=definition.title,
            description=definition.description,
            difficulty=definition.difficulty,
            duration_minutes=definition.duration_minutes,
            requirements=list(definition.requirements),
            participant_limits=definition.participant_limits,
            rewards=definition.rewards,
            mini_app_config=definition.mini_app_config,
            created_at=created_at,
            expires_at=created_at + timedelta(minutes=definition.duration_minutes),
        )

    # ------- Status Helpers -------

    def ensure_active(self) -> None:
        if self.status is not QuestStatus.ACTIVE:
            raise QuestNotActive(self.quest_id, self.status.value)

    def set_completed(self, at: datetime) -> None:
        self.ensure_active()
        self.status = QuestStatus.COMPLETED
        self.ended_at = at

    def set_expired(self, at: datetime) -> None:
        self.ensure_active()
        self.status = QuestStatus.EXPIRED
        self.ended_at = at

    # ------- Property Helpers -------

    @property
    def is_active(self) -> bool:
        return self.status is QuestStatus.ACTIVE

    @property
    def is_full(self) -> bool:
        return len(self.participants) >= self.participant_limits.max

    def is_due(self, now: datetime) -> bool:
        return self.is_active and self.expires_at <= now

    # ------- Participant Helpers -------

    def has_participant(self, user_id: str) -> bool:
        return user_id in self.participants

    def add_participant(self, user_id: str) -> bool:
        self.ensure_active()
        if self.has_participant(user_id):
            return False
        if self.is_full:
            raise QuestFull(self.quest_id, self.participant_limits.max)
        self.participants.append(user_id)
        return True

    def remove_participant(self, user_id: str) -> bool:
        if not self.has_participant(user_id):
            return False
        self.participants.remove(user_id)
        return True

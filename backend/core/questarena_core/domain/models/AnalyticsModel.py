from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional


class ActivityLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class ChatMessage:
    """One inbound message from the chat transport."""

    conversation_id: str
    sender_id: str
    text: str
    sent_at: datetime
    member_count: int = 0


@dataclass(frozen=True)
class ConversationAnalytics:
    """Point-in-time view of a conversation's engagement signals."""

    conversation_id: str
    messages_since_last_quest: int = 0
    active_users: int = 0
    member_count: int = 0
    engagement_ratio: float = 0.0
    messages_last_hour: int = 0
    activity_level: ActivityLevel = ActivityLevel.LOW
    topics: List[str] = field(default_factory=lambda: ["general"])
    last_quest_created: Optional[datetime] = None
    # None means no quest has ever been created here
    time_since_last_quest: Optional[timedelta] = None

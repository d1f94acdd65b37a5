from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from questarena_core.domain.models.AnalyticsModel import ConversationAnalytics
from questarena_core.infra import settings


@dataclass(frozen=True)
class GatingPolicy:
    """Thresholds a conversation must clear before a quest is proposed.

    All conditions must hold. ``min_engagement_ratio`` is exclusive, the
    other thresholds are inclusive. A conversation that never had a quest
    satisfies the cooldown.
    """

    min_messages: int = 10
    min_active_users: int = 2
    min_engagement_ratio: float = 0.5
    cooldown: timedelta = timedelta(minutes=30)

    @classmethod
    def from_settings(cls) -> GatingPolicy:
        return cls(
            min_messages=settings.QUEST_MIN_MESSAGES,
            min_active_users=settings.QUEST_MIN_ACTIVE_USERS,
            min_engagement_ratio=settings.QUEST_MIN_ENGAGEMENT_RATIO,
            cooldown=timedelta(minutes=settings.QUEST_COOLDOWN_MINUTES),
        )

    def allows(self, snapshot: ConversationAnalytics, has_active_quest: bool) -> bool:
        if has_active_quest:
            return False
        if snapshot.messages_since_last_quest < self.min_messages:
            return False
        if snapshot.active_users < self.min_active_users:
            return False
        if snapshot.engagement_ratio <= self.min_engagement_ratio:
            return False
        since = snapshot.time_since_last_quest
        return since is None or since >= self.cooldown

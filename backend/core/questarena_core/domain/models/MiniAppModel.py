from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from questarena_core.domain.models.QuestModel import MiniAppType


class MiniAppStatus(Enum):
    ACTIVE = "active"
    EXPIRED = "expired"


@dataclass
class MiniAppRecord:
    """UI-facing mirror of a quest: deep link, status and participant cache."""

    quest_id: str
    conversation_id: str
    url: str
    app_type: MiniAppType
    config: Dict[str, Any]
    launched_at: datetime
    expires_at: datetime
    status: MiniAppStatus = MiniAppStatus.ACTIVE
    closed_at: datetime | None = None
    participants: List[str] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status is MiniAppStatus.ACTIVE

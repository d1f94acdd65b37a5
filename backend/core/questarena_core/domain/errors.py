"""Typed failures raised by the quest engine.

Each error carries a stable ``kind`` so transports can report it as a
structured ``{"kind", "message"}`` value instead of leaking exception text.
"""

from __future__ import annotations

from typing import Dict


class QuestArenaError(Exception):
    """Base class for every recoverable engine failure."""

    kind: str = "QuestArenaError"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.kind
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class InvalidQuestDefinition(QuestArenaError):
    kind = "InvalidQuestDefinition"


class QuestNotFound(QuestArenaError):
    kind = "QuestNotFound"

    def __init__(self, quest_id: object) -> None:
        self.quest_id = str(quest_id)
        super().__init__(f"Quest {quest_id} not found")


class QuestNotActive(QuestArenaError):
    kind = "QuestNotActive"

    def __init__(self, quest_id: object, status: str) -> None:
        self.quest_id = str(quest_id)
        self.status = status
        super().__init__(f"Quest {quest_id} is not active (status={status})")


class QuestFull(QuestArenaError):
    kind = "QuestFull"

    def __init__(self, quest_id: object, capacity: int) -> None:
        self.quest_id = str(quest_id)
        self.capacity = capacity
        super().__init__(f"Quest {quest_id} is full ({capacity} participants)")


class NotAParticipant(QuestArenaError):
    kind = "NotAParticipant"

    def __init__(self, quest_id: object, user_id: str) -> None:
        self.quest_id = str(quest_id)
        self.user_id = user_id
        super().__init__(f"User {user_id} is not a participant in quest {quest_id}")


class QuestAlreadyActive(QuestArenaError):
    kind = "QuestAlreadyActive"

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id} already has an active quest")


class ProposerUnavailable(QuestArenaError):
    kind = "ProposerUnavailable"


INTERNAL_ERROR = {"kind": "InternalError", "message": "Internal error"}


__all__ = [
    "INTERNAL_ERROR",
    "InvalidQuestDefinition",
    "NotAParticipant",
    "ProposerUnavailable",
    "QuestAlreadyActive",
    "QuestArenaError",
    "QuestFull",
    "QuestNotActive",
    "QuestNotFound",
]

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Deque, Dict, List, Optional, Tuple

from questarena_core.domain.models.AnalyticsModel import (
    ActivityLevel,
    ChatMessage,
    ConversationAnalytics,
)
from questarena_core.utils.locks import KeyedLocks

RECENT_MESSAGE_LIMIT = 10
SUMMARY_MESSAGE_LIMIT = 5
TOPIC_COUNT = 3


@dataclass
class _ConversationState:
    messages_since_last_quest: int = 0
    member_count: int = 0
    last_quest_created: Optional[datetime] = None
    activity: Deque[Tuple[datetime, str]] = field(default_factory=deque)
    recent: Deque[str] = field(default_factory=lambda: deque(maxlen=RECENT_MESSAGE_LIMIT))


def as_utc(moment: datetime) -> datetime:
    """Timezone-aware UTC view of ``moment``; naive values are taken as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def activity_level(messages_last_hour: int) -> ActivityLevel:
    if messages_last_hour < 5:
        return ActivityLevel.LOW
    if messages_last_hour < 15:
        return ActivityLevel.MEDIUM
    return ActivityLevel.HIGH


def extract_topics(texts: List[str], count: int = TOPIC_COUNT) -> List[str]:
    words = Counter(
        word for text in texts for word in text.lower().split() if len(word) > 3
    )
    if not words:
        return ["general"]
    return [word for word, _ in words.most_common(count)]


class ConversationSignalTracker:
    """Rolling per-conversation engagement counters.

    Only bookkeeping happens here: the tracker never decides anything and
    never fails. Unknown conversations yield a zeroed snapshot.
    """

    def __init__(
        self,
        window: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._window = window
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._states: Dict[str, _ConversationState] = {}
        self._locks = KeyedLocks()

    def _state(self, conversation_id: str) -> _ConversationState:
        state = self._states.get(conversation_id)
        if state is None:
            state = self._states.setdefault(conversation_id, _ConversationState())
        return state

    def _prune(self, state: _ConversationState, now: datetime) -> None:
        # Messages may arrive out of order, so every entry is checked.
        cutoff = as_utc(now) - self._window
        if any(sent_at < cutoff for sent_at, _ in state.activity):
            state.activity = deque(
                (sent_at, sender) for sent_at, sender in state.activity if sent_at >= cutoff
            )

    def observe(
        self, conversation_id: str, message: ChatMessage, member_count: int | None = None
    ) -> None:
        with self._locks.hold(conversation_id):
            state = self._state(conversation_id)
            state.messages_since_last_quest += 1
            if member_count is not None:
                state.member_count = max(member_count, 0)
            state.activity.append((as_utc(message.sent_at), message.sender_id))
            if message.text:
                state.recent.append(message.text)
            self._prune(state, self._clock())

    def member_changed(self, conversation_id: str, member_count: int) -> None:
        with self._locks.hold(conversation_id):
            self._state(conversation_id).member_count = max(member_count, 0)

    def reset(self, conversation_id: str, now: datetime | None = None) -> None:
        with self._locks.hold(conversation_id):
            state = self._state(conversation_id)
            state.messages_since_last_quest = 0
            state.last_quest_created = as_utc(now or self._clock())

    def snapshot(
        self, conversation_id: str, now: datetime | None = None
    ) -> ConversationAnalytics:
        now = as_utc(now or self._clock())
        with self._locks.hold(conversation_id):
            state = self._states.get(conversation_id)
            if state is None:
                return ConversationAnalytics(conversation_id=conversation_id)

            self._prune(state, now)
            active_users = len({sender for _, sender in state.activity})
            ratio = (
                min(active_users / state.member_count, 1.0) if state.member_count else 0.0
            )
            since = (
                now - state.last_quest_created
                if state.last_quest_created is not None
                else None
            )
            return ConversationAnalytics(
                conversation_id=conversation_id,
                messages_since_last_quest=state.messages_since_last_quest,
                active_users=active_users,
                member_count=state.member_count,
                engagement_ratio=ratio,
                messages_last_hour=len(state.activity),
                activity_level=activity_level(len(state.activity)),
                topics=extract_topics(list(state.recent)),
                last_quest_created=state.last_quest_created,
                time_since_last_quest=since,
            )

    def recent_text(self, conversation_id: str) -> str:
        with self._locks.hold(conversation_id):
            state = self._states.get(conversation_id)
            return " ".join(state.recent) if state else ""

    def recent_summary(self, conversation_id: str, limit: int = SUMMARY_MESSAGE_LIMIT) -> str:
        with self._locks.hold(conversation_id):
            state = self._states.get(conversation_id)
            texts = list(state.recent)[-limit:] if state else []
        return "\n".join(f"User: {text}" for text in texts)

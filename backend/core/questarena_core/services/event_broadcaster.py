"""Fan-out of engine state changes to real-time subscribers.

Each subscriber owns a bounded FIFO queue. ``publish`` never waits on a
subscriber: a full or closed queue only drops that subscriber, everybody
else still receives the event. Within one subscriber, events arrive in
publish order.
"""

from __future__ import annotations

import asyncio
import itertools
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from questarena_core.utils.logging import get_logger

logger = get_logger(__name__)


class EventType(Enum):
    QUEST_CREATED = "questCreated"
    QUEST_COMPLETED = "questCompleted"
    QUEST_EXPIRED = "questExpired"
    PARTICIPANT_JOINED = "participantJoined"
    PARTICIPANT_LEFT = "participantLeft"
    USER_STATS = "userStats"
    ERROR = "error"
    # replies sent only to the requesting connection
    SUBSCRIBED = "subscribed"
    ACTIVE_QUESTS = "activeQuests"
    QUEST = "quest"
    ACTION_RESULT = "actionResult"


@dataclass(frozen=True)
class Event:
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    published_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SubscriberClosed(Exception):
    pass


class Subscriber(Protocol):
    subscriber_id: int

    def deliver(self, event: Event) -> None: ...


_ids = itertools.count(1)


class QueueSubscriber:
    """Queue-backed subscriber drained by its transport's writer task."""

    def __init__(self, maxsize: int = 256) -> None:
        self.subscriber_id = next(_ids)
        self._queue: asyncio.Queue[Optional[Event]] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: Event) -> None:
        if self._closed:
            raise SubscriberClosed(f"subscriber {self.subscriber_id} is closed")
        self._queue.put_nowait(event)

    async def next(self) -> Optional[Event]:
        """Wait for the next event; ``None`` once the subscriber is closed."""
        return await self._queue.get()

    def pending(self) -> List[Event]:
        """Drain and return queued events without waiting."""
        drained = []
        while not self._queue.empty():
            event = self._queue.get_nowait()
            if event is not None:
                drained.append(event)
        return drained

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # undelivered events are discarded so the close marker always fits
        self.pending()
        self._queue.put_nowait(None)


class EventBroadcaster:
    def __init__(self, queue_size: int = 256) -> None:
        self._queue_size = queue_size
        self._subscribers: Dict[int, Subscriber] = {}
        self._lock = threading.RLock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, subscriber: Subscriber | None = None) -> Subscriber:
        subscriber = subscriber or QueueSubscriber(self._queue_size)
        with self._lock:
            self._subscribers[subscriber.subscriber_id] = subscriber
        logger.structured("subscriber_added", subscriber_id=subscriber.subscriber_id)
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> bool:
        with self._lock:
            removed = self._subscribers.pop(subscriber.subscriber_id, None) is not None
        close = getattr(subscriber, "close", None)
        if callable(close):
            close()
        if removed:
            logger.structured("subscriber_removed", subscriber_id=subscriber.subscriber_id)
        return removed

    def publish(self, event: Event) -> int:
        """Deliver ``event`` to every subscriber; returns the delivery count."""

        delivered = 0
        dropped: List[Subscriber] = []
        # Held across the loop so concurrent publishes keep one global order.
        with self._lock:
            for subscriber in list(self._subscribers.values()):
                try:
                    subscriber.deliver(event)
                    delivered += 1
                except Exception as exc:
                    logger.warning(
                        "Dropping subscriber %s after failed delivery of %s: %r",
                        subscriber.subscriber_id,
                        event.type.value,
                        exc,
                    )
                    dropped.append(subscriber)
            for subscriber in dropped:
                self.unsubscribe(subscriber)
        return delivered

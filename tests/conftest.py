import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from questarena_core.domain.models.QuestModel import (
    Difficulty,
    ParticipantLimits,
    QuestDefinition,
    QuestRewards,
    QuestType,
)
from questarena_core.services.event_broadcaster import EventBroadcaster
from questarena_core.services.gating import GatingPolicy
from questarena_core.services.miniapp_manager import MiniAppLifecycleManager
from questarena_core.services.orchestrator import QuestOrchestrator
from questarena_core.services.personas import PersonaSelector
from questarena_core.services.profile_store import UserProfileStore
from questarena_core.services.quest_registry import QuestRegistry
from questarena_core.services.signal_tracker import ConversationSignalTracker


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class StubProposer:
    """Returns a canned proposal (or raises) and records every call."""

    def __init__(self, result=None, error=None, delay: float = 0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = []

    async def propose(self, persona, analytics, recent_summary, member_count):
        self.calls.append((persona.name, analytics, recent_summary, member_count))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class RecordingSender:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    async def send(self, conversation_id, text):
        if self.error is not None:
            raise self.error
        self.sent.append((conversation_id, text))


def make_definition(**overrides) -> QuestDefinition:
    fields = dict(
        type=QuestType.SOCIAL_CHALLENGE,
        title="Icebreaker Relay",
        description="Share a hot take and tag the next person.",
        difficulty=Difficulty.MEDIUM,
        duration_minutes=30,
        participant_limits=ParticipantLimits(min=1, max=3),
        rewards=QuestRewards(xp=100),
    )
    fields.update(overrides)
    return QuestDefinition(**fields)


@pytest.fixture
def t0():
    return datetime(2030, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(t0):
    return FakeClock(t0)


@pytest.fixture
def definition():
    return make_definition()


@pytest.fixture
def registry(clock):
    return QuestRegistry(clock=clock)


@pytest.fixture
def profiles(clock):
    return UserProfileStore(clock=clock)


@pytest.fixture
def broadcaster():
    return EventBroadcaster(queue_size=64)


@pytest.fixture
def mini_apps(clock):
    return MiniAppLifecycleManager("https://apps.example.com", clock=clock)


@pytest.fixture
def proposer():
    return StubProposer(result=make_definition())


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def orchestrator(clock, registry, profiles, broadcaster, mini_apps, proposer, sender):
    return QuestOrchestrator(
        tracker=ConversationSignalTracker(clock=clock),
        registry=registry,
        profiles=profiles,
        mini_apps=mini_apps,
        broadcaster=broadcaster,
        proposer=proposer,
        personas=PersonaSelector(),
        policy=GatingPolicy(),
        sender=sender,
        clock=clock,
        proposer_timeout=0.5,
        self_id="engine",
    )

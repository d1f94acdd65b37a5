# tests/domain/models/test_quest_model.py
from datetime import timedelta

import pytest

from questarena_core.domain.errors import InvalidQuestDefinition, QuestFull, QuestNotActive
from questarena_core.domain.models.EntityIDModel import QuestID
from questarena_core.domain.models.QuestModel import (
    Difficulty,
    MiniAppType,
    ParticipantLimits,
    Quest,
    QuestDefinition,
    QuestRewards,
    QuestStatus,
    QuestType,
)
from tests.conftest import make_definition


def make_quest(now, **overrides) -> Quest:
    return Quest.from_definition(make_definition(**overrides), "conv-1", created_at=now)


def test_from_definition_sets_deadline(t0):
    q = make_quest(t0, duration_minutes=45)
    assert q.status is QuestStatus.ACTIVE
    assert q.created_at == t0
    assert q.expires_at == t0 + timedelta(minutes=45)
    assert q.participants == []
    assert str(q.quest_id).startswith("QUES")


@pytest.mark.parametrize(
    "overrides",
    [
        {"participant_limits": ParticipantLimits(min=1, max=0)},
        {"participant_limits": ParticipantLimits(min=0, max=2)},
        {"participant_limits": ParticipantLimits(min=3, max=2)},
        {"duration_minutes": 0},
        {"rewards": QuestRewards(xp=-1)},
        {"rewards": QuestRewards(xp=10, tokens=-0.5)},
        {"title": "   "},
    ],
)
def test_invalid_definitions_are_rejected(t0, overrides):
    with pytest.raises(InvalidQuestDefinition):
        make_quest(t0, **overrides)


def test_status_helpers(t0):
    q = make_quest(t0)
    assert q.is_active
    assert not q.is_due(t0 + timedelta(minutes=29))
    assert q.is_due(t0 + timedelta(minutes=30))

    q.set_completed(t0 + timedelta(minutes=5))
    assert q.status is QuestStatus.COMPLETED
    assert q.ended_at == t0 + timedelta(minutes=5)
    assert not q.is_due(t0 + timedelta(hours=1))

    # terminal states are final
    with pytest.raises(QuestNotActive):
        q.set_expired(t0 + timedelta(hours=1))


def test_add_participant_is_idempotent_and_bounded(t0):
    q = make_quest(t0, participant_limits=ParticipantLimits(min=1, max=2))
    assert q.add_participant("alice") is True
    assert q.add_participant("alice") is False
    assert q.add_participant("bob") is True
    assert q.is_full

    # a duplicate on a full quest is still just a no-op
    assert q.add_participant("bob") is False
    with pytest.raises(QuestFull):
        q.add_participant("carol")
    assert q.participants == ["alice", "bob"]


def test_join_after_expiry_fails(t0):
    q = make_quest(t0)
    q.set_expired(t0 + timedelta(minutes=31))
    with pytest.raises(QuestNotActive):
        q.add_participant("alice")


def test_remove_participant(t0):
    q = make_quest(t0)
    q.add_participant("alice")
    assert q.remove_participant("alice") is True
    assert q.remove_participant("alice") is False


def test_from_dict_accepts_camel_case_payload():
    definition = QuestDefinition.from_dict(
        {
            "type": "creative_contest",
            "title": "Meme Jam",
            "description": "Make a meme",
            "difficulty": "hard",
            "duration": 60,
            "participantLimits": {"min": 2, "max": 8},
            "rewards": {"xp": 150, "badges": ["jammer"]},
            "miniAppConfig": {"type": "gallery"},
        }
    )
    assert definition.type is QuestType.CREATIVE_CONTEST
    assert definition.difficulty is Difficulty.HARD
    assert definition.duration_minutes == 60
    assert definition.participant_limits == ParticipantLimits(min=2, max=8)
    assert definition.rewards.badges == ["jammer"]
    assert definition.mini_app_config.type is MiniAppType.GALLERY


@pytest.mark.parametrize(
    "payload",
    [
        {"title": "No type", "duration": 30},
        {"type": "treasure_hunt", "title": "Bad type", "duration": 30},
        {"type": "social_challenge", "title": "No duration"},
        {"type": "social_challenge", "title": "Listy", "duration": 30, "participantLimits": [1, 2]},
        {"type": "social_challenge", "title": "Greedy", "duration": 30, "rewards": {"tokens": "lots"}},
        {"type": "social_challenge", "title": "Odd", "duration": 30, "rewards": "xp"},
        {"type": "social_challenge", "title": "Odd", "duration": 30, "miniAppConfig": 3},
        ["social_challenge", "Not an object"],
    ],
)
def test_from_dict_rejects_malformed_payloads(payload):
    with pytest.raises(InvalidQuestDefinition):
        QuestDefinition.from_dict(payload)


def test_from_dict_coerces_numeric_tokens():
    definition = QuestDefinition.from_dict(
        {"type": "social_challenge", "title": "Paid", "duration": 30, "rewards": {"tokens": "2.5"}}
    )
    assert definition.rewards.tokens == 2.5


def test_non_numeric_tokens_fail_validation():
    definition = make_definition(rewards=QuestRewards(xp=10, tokens="lots"))
    with pytest.raises(InvalidQuestDefinition):
        definition.validate()


def test_bare_quest_has_no_deadline():
    quest = Quest(quest_id=QuestID.generate(), conversation_id="conv-1")
    assert quest.created_at is None
    assert quest.expires_at is None

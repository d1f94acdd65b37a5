from datetime import timedelta

import pytest

from questarena_core.domain.models.AnalyticsModel import ConversationAnalytics
from questarena_core.services.gating import GatingPolicy


def _snapshot(**overrides):
    fields = dict(
        conversation_id="conv-1",
        messages_since_last_quest=10,
        active_users=2,
        member_count=3,
        engagement_ratio=0.6,
        time_since_last_quest=timedelta(minutes=31),
    )
    fields.update(overrides)
    return ConversationAnalytics(**fields)


def test_thresholds_met_allows_creation():
    assert GatingPolicy().allows(_snapshot(), has_active_quest=False) is True


def test_low_engagement_blocks_creation():
    assert GatingPolicy().allows(_snapshot(engagement_ratio=0.4), has_active_quest=False) is False


@pytest.mark.parametrize(
    "overrides",
    [
        {"messages_since_last_quest": 9},
        {"active_users": 1},
        {"engagement_ratio": 0.5},
        {"time_since_last_quest": timedelta(minutes=29)},
    ],
)
def test_each_threshold_is_required(overrides):
    assert GatingPolicy().allows(_snapshot(**overrides), has_active_quest=False) is False


def test_active_quest_blocks_creation():
    assert GatingPolicy().allows(_snapshot(), has_active_quest=True) is False


def test_first_quest_skips_cooldown():
    assert GatingPolicy().allows(_snapshot(time_since_last_quest=None), has_active_quest=False)


def test_cooldown_boundary_is_inclusive():
    policy = GatingPolicy(cooldown=timedelta(minutes=30))
    assert policy.allows(_snapshot(time_since_last_quest=timedelta(minutes=30)), False)

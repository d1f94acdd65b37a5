import pytest

from questarena_core.domain.models.QuestModel import QuestType
from questarena_core.domain.models.UserProfileModel import UserProfile, level_for_xp


@pytest.mark.parametrize(
    "xp,level",
    [(0, 1), (99, 1), (100, 2), (150, 2), (999, 10), (1000, 11)],
)
def test_level_for_xp(xp, level):
    assert level_for_xp(xp) == level


def test_new_profile_defaults():
    profile = UserProfile(user_id="alice")
    assert profile.xp == 0
    assert profile.level == 1
    assert profile.social_score == 0
    assert profile.quests_completed == 0
    assert profile.preferences == frozenset()


def test_level_tracks_xp():
    profile = UserProfile(
        user_id="alice",
        xp=250,
        completed_quest_ids=frozenset({"QUESA1B2C3"}),
        preferences=frozenset({QuestType.KNOWLEDGE_QUEST}),
    )
    assert profile.level == 3
    assert profile.quests_completed == 1

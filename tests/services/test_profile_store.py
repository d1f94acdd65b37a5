from questarena_core.domain.models.QuestModel import Quest, QuestRewards, QuestType
from tests.conftest import make_definition


def test_get_or_create_is_lazy_and_stable(profiles, t0):
    profile = profiles.get_or_create("alice")
    assert profile.level == 1
    assert profile.last_active == t0
    assert profiles.get_or_create("alice") is profile


def test_record_join_tracks_preferences(profiles, clock):
    clock.advance(minutes=3)
    profile = profiles.record_join("alice", QuestType.CREATIVE_CONTEST)
    profiles.record_join("alice", QuestType.CREATIVE_CONTEST)
    assert profile.preferences == frozenset({QuestType.CREATIVE_CONTEST})
    assert profile.last_active == clock()


def test_record_completion_appends_history(profiles, t0):
    quest = Quest.from_definition(
        make_definition(rewards=QuestRewards(xp=120)), "conv-1", created_at=t0
    )
    profile, completion = profiles.record_completion("alice", quest, "done")

    assert profile.xp == 120
    assert profiles.get_or_create("alice") == profile
    assert profiles.history("alice") == [completion]
    assert profiles.history("bob") == []
    assert profiles.history() == [completion]


def test_leaderboard_orders_by_xp(profiles, t0):
    for user, xp in [("alice", 50), ("bob", 300), ("carol", 120)]:
        quest = Quest.from_definition(
            make_definition(rewards=QuestRewards(xp=xp)), "conv-1", created_at=t0
        )
        profiles.record_completion(user, quest, None)

    assert [p.user_id for p in profiles.leaderboard(2)] == ["bob", "carol"]
    assert profiles.leaderboard(0) == []

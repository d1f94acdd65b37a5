from datetime import timedelta

from questarena_core.domain.models.MiniAppModel import MiniAppStatus
from questarena_core.domain.models.QuestModel import MiniAppConfig, MiniAppType, Quest
from questarena_core.services.miniapp_manager import mini_app_url
from tests.conftest import make_definition


def _quest(t0, **overrides):
    return Quest.from_definition(make_definition(**overrides), "conv-1", created_at=t0)


def test_launch_builds_deep_link_and_config(mini_apps, t0):
    quest = _quest(
        t0,
        mini_app_config=MiniAppConfig(type=MiniAppType.POLL, config={"topic": "rust"}),
    )
    record = mini_apps.launch(quest)

    assert record.url == f"https://apps.example.com/quest/{quest.quest_id}?type=social_challenge"
    assert record.app_type is MiniAppType.POLL
    assert record.config["topic"] == "rust"
    assert record.config["title"] == quest.title
    assert record.config["rewards"]["xp"] == 100
    assert record.expires_at == t0 + timedelta(minutes=30)
    assert [r.quest_id for r in mini_apps.list_active()] == [record.quest_id]


def test_mini_app_url_strips_trailing_slash(t0):
    quest = _quest(t0)
    assert mini_app_url("http://host/", quest).startswith("http://host/quest/QUES")


def test_participant_mirror(mini_apps, t0):
    quest = _quest(t0)
    mini_apps.launch(quest)
    qid = str(quest.quest_id)

    assert mini_apps.add_participant(qid, "alice") is True
    assert mini_apps.add_participant(qid, "alice") is False
    assert mini_apps.remove_participant(qid, "alice") is True
    assert mini_apps.remove_participant(qid, "alice") is False


def test_unknown_quest_is_not_an_error(mini_apps):
    assert mini_apps.get("QUESZ9Z9Z9") is None
    assert mini_apps.add_participant("QUESZ9Z9Z9", "alice") is False
    assert mini_apps.close("QUESZ9Z9Z9") is False


def test_close_fires_once(mini_apps, t0):
    quest = _quest(t0)
    mini_apps.launch(quest)
    assert mini_apps.close(str(quest.quest_id)) is True
    assert mini_apps.close(str(quest.quest_id)) is False
    assert mini_apps.get(str(quest.quest_id)).status is MiniAppStatus.EXPIRED
    assert mini_apps.list_active() == []


def test_expire_due_uses_launch_time(mini_apps, clock, t0):
    quest = _quest(t0, duration_minutes=30)
    clock.advance(minutes=5)
    mini_apps.launch(quest)

    assert mini_apps.expire_due(t0 + timedelta(minutes=31)) == []
    assert mini_apps.expire_due(t0 + timedelta(minutes=35)) == [str(quest.quest_id)]
    assert mini_apps.expire_due(t0 + timedelta(minutes=40)) == []

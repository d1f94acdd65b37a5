import logging

from questarena_core.infra import settings


def test_env_number_uses_environment(monkeypatch):
    monkeypatch.setenv("QUEST_MIN_MESSAGES", "25")
    assert settings._env_number("QUEST_MIN_MESSAGES", 10) == 25


def test_env_number_defaults_when_unset_or_blank(monkeypatch):
    monkeypatch.delenv("QUEST_MIN_MESSAGES", raising=False)
    assert settings._env_number("QUEST_MIN_MESSAGES", 10) == 10
    monkeypatch.setenv("QUEST_MIN_MESSAGES", "  ")
    assert settings._env_number("QUEST_MIN_MESSAGES", 10) == 10


def test_env_number_warns_on_malformed_value(monkeypatch, caplog):
    monkeypatch.setenv("QUEST_MIN_ENGAGEMENT_RATIO", "lots")
    with caplog.at_level(logging.WARNING):
        value = settings._env_number("QUEST_MIN_ENGAGEMENT_RATIO", 0.5, float)
    assert value == 0.5
    assert "QUEST_MIN_ENGAGEMENT_RATIO" in caplog.text

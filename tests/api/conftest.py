import pytest
from fastapi.testclient import TestClient

from questarena_api.main import create_app
from questarena_core.infra import settings


@pytest.fixture
def app(orchestrator, monkeypatch):
    monkeypatch.setattr(settings, "API_SECRET_KEY", "")
    monkeypatch.setattr(settings, "BOT_TOKEN", None)
    return create_app(orchestrator)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def quest_id(client):
    response = client.post("/api/quests/trigger", json={"conversation_id": "conv-1"})
    assert response.status_code == 200
    return response.json()["quest"]["quest_id"]

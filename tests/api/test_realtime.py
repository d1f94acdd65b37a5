from types import SimpleNamespace

import pytest

from questarena_api.routers.realtime import handle_socket_message, quest_socket
from questarena_core.services.event_broadcaster import EventType


def test_subscribe_ack(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "subscribe"})
        assert ws.receive_json()["type"] == "subscribed"


def test_join_action_broadcasts_then_replies(client, quest_id):
    with client.websocket_connect("/ws") as ws:
        ws.send_json(
            {"type": "questAction", "data": {"action": "joinQuest", "questId": quest_id, "userInboxId": "alice"}}
        )
        broadcast = ws.receive_json()
        assert broadcast["type"] == "participantJoined"
        assert broadcast["data"]["userId"] == "alice"
        assert broadcast["data"]["quest"]["participants"] == ["alice"]

        reply = ws.receive_json()
        assert reply == {"type": "actionResult", "data": {"action": "joinQuest", "success": True}}


def test_rest_changes_reach_socket(client, quest_id):
    with client.websocket_connect("/ws") as ws:
        client.post(f"/api/quests/{quest_id}/join", json={"user_id": "bob"})
        message = ws.receive_json()
        assert message["type"] == "participantJoined"
        assert message["data"]["questId"] == quest_id


def test_domain_errors_are_structured(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json(
            {"type": "questAction", "data": {"action": "joinQuest", "questId": "QUESZ9Z9Z9", "userId": "a"}}
        )
        reply = ws.receive_json()
        assert reply["type"] == "error"
        assert reply["data"]["kind"] == "QuestNotFound"


def test_list_and_stats_actions(client, quest_id):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "questAction", "data": {"action": "listActiveQuests"}})
        reply = ws.receive_json()
        assert reply["type"] == "activeQuests"
        assert reply["data"]["count"] == 1

        ws.send_json({"type": "questAction", "data": {"action": "getUserStats", "userId": "carol"}})
        reply = ws.receive_json()
        assert reply["type"] == "userStats"
        assert reply["data"]["profile"]["level"] == 1


def test_handle_socket_message_rejects_bad_frames(orchestrator):
    assert handle_socket_message(orchestrator, ["nope"]).type is EventType.ERROR
    assert handle_socket_message(orchestrator, {"type": "dance"}).data["kind"] == "InvalidMessage"

    missing_user = handle_socket_message(
        orchestrator, {"type": "questAction", "data": {"action": "joinQuest", "questId": "QUESA1B2C3"}}
    )
    assert missing_user.data == {"kind": "InvalidMessage", "message": "userId is required"}

    unknown = handle_socket_message(orchestrator, {"type": "questAction", "data": {"action": "fly"}})
    assert unknown.type is EventType.ERROR


def test_internal_errors_are_not_leaked(orchestrator, monkeypatch):
    def explode(*args):
        raise RuntimeError("database password is hunter2")

    monkeypatch.setattr(orchestrator, "get_user_stats", explode)
    event = handle_socket_message(
        orchestrator, {"type": "questAction", "data": {"action": "getUserStats", "userId": "a"}}
    )
    assert event.data == {"kind": "InternalError", "message": "Internal error"}


def test_disconnect_releases_subscription(client, orchestrator):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "subscribe"})
        assert ws.receive_json()["type"] == "subscribed"
        assert orchestrator.broadcaster.subscriber_count == 1
    assert orchestrator.broadcaster.subscriber_count == 0


class _RefusingSocket:
    def __init__(self, orchestrator):
        self.app = SimpleNamespace(state=SimpleNamespace(orchestrator=orchestrator))

    async def accept(self):
        raise RuntimeError("handshake refused")


@pytest.mark.asyncio
async def test_failed_handshake_releases_subscription(orchestrator):
    with pytest.raises(RuntimeError):
        await quest_socket(_RefusingSocket(orchestrator))
    assert orchestrator.broadcaster.subscriber_count == 0

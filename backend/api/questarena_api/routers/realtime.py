"""WebSocket binding: broadcast fan-out plus per-connection quest actions.

Every connection gets one broadcaster subscription. Direct replies
(acks, stats, errors) are pushed through that same subscription so a
client sees replies and broadcasts in one consistent order.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Mapping

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from questarena_api.mappers import event_to_message
from questarena_core.domain.errors import INTERNAL_ERROR, QuestArenaError
from questarena_core.services.event_broadcaster import Event, EventType, QueueSubscriber
from questarena_core.services.orchestrator import QuestOrchestrator
from questarena_core.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["realtime"])


def _error(kind: str, message: str) -> Event:
    return Event(EventType.ERROR, {"kind": kind, "message": message})


def _user_id(data: Mapping[str, Any]) -> str:
    user_id = data.get("userId") or data.get("userInboxId")
    if not isinstance(user_id, str) or not user_id:
        raise ValueError("userId is required")
    return user_id


def _quest_id(data: Mapping[str, Any]) -> str:
    quest_id = data.get("questId")
    if not isinstance(quest_id, str) or not quest_id:
        raise ValueError("questId is required")
    return quest_id


def _join(o: QuestOrchestrator, data: Mapping[str, Any]) -> Event:
    ok = o.join(_quest_id(data), _user_id(data))
    return Event(EventType.ACTION_RESULT, {"action": "joinQuest", "success": ok})


def _leave(o: QuestOrchestrator, data: Mapping[str, Any]) -> Event:
    ok = o.leave(_quest_id(data), _user_id(data))
    return Event(EventType.ACTION_RESULT, {"action": "leaveQuest", "success": ok})


def _complete(o: QuestOrchestrator, data: Mapping[str, Any]) -> Event:
    completion = o.complete(_quest_id(data), _user_id(data), data.get("result"))
    return Event(
        EventType.ACTION_RESULT,
        {"action": "completeQuest", "success": True, "completion": completion},
    )


def _user_stats(o: QuestOrchestrator, data: Mapping[str, Any]) -> Event:
    return Event(EventType.USER_STATS, {"profile": o.get_user_stats(_user_id(data))})


def _list_active(o: QuestOrchestrator, data: Mapping[str, Any]) -> Event:
    quests = o.list_active_quests(data.get("conversationId"))
    return Event(EventType.ACTIVE_QUESTS, {"quests": quests, "count": len(quests)})


def _get_quest(o: QuestOrchestrator, data: Mapping[str, Any]) -> Event:
    return Event(EventType.QUEST, {"quest": o.get_quest(_quest_id(data))})


QUEST_ACTIONS: Dict[str, Callable[[QuestOrchestrator, Mapping[str, Any]], Event]] = {
    "joinQuest": _join,
    "leaveQuest": _leave,
    "completeQuest": _complete,
    "getUserStats": _user_stats,
    "listActiveQuests": _list_active,
    "getQuest": _get_quest,
}


def handle_socket_message(orchestrator: QuestOrchestrator, payload: Any) -> Event:
    """Map one client frame to the reply event for that client."""

    if not isinstance(payload, Mapping):
        return _error("InvalidMessage", "Payload must be a JSON object.")

    message_type = payload.get("type")
    if message_type == "subscribe":
        return Event(EventType.SUBSCRIBED, {"message": "Connected to Quest Arena"})
    if message_type != "questAction":
        return _error("InvalidMessage", f"Unknown message type: {message_type!r}")

    data = payload.get("data")
    if not isinstance(data, Mapping):
        return _error("InvalidMessage", "questAction requires a data object.")
    handler = QUEST_ACTIONS.get(data.get("action"))
    if handler is None:
        return _error("InvalidMessage", f"Unknown action: {data.get('action')!r}")

    try:
        return handler(orchestrator, data)
    except QuestArenaError as exc:
        return Event(EventType.ERROR, exc.to_dict())
    except ValueError as exc:
        return _error("InvalidMessage", str(exc))
    except Exception:
        logger.exception("Error handling quest action %s", data.get("action"))
        return Event(EventType.ERROR, dict(INTERNAL_ERROR))


async def _pump(websocket: WebSocket, subscriber: QueueSubscriber) -> None:
    while True:
        event = await subscriber.next()
        if event is None:
            break
        await websocket.send_json(event_to_message(event))
    # subscriber was dropped (too slow or closed): end the connection
    await websocket.close(code=1013)


@router.websocket("/ws")
async def quest_socket(websocket: WebSocket) -> None:
    orchestrator: QuestOrchestrator = websocket.app.state.orchestrator
    subscriber: QueueSubscriber | None = None
    writer: asyncio.Task | None = None

    try:
        # registered before the handshake completes
        subscriber = orchestrator.broadcaster.subscribe()
        await websocket.accept()
        writer = asyncio.create_task(_pump(websocket, subscriber))
        logger.info("WebSocket subscriber %s connected", subscriber.subscriber_id)

        while True:
            try:
                payload = await websocket.receive_json()
            except WebSocketDisconnect:
                break
            except ValueError:
                reply = _error("InvalidMessage", "Frames must be JSON.")
            else:
                reply = handle_socket_message(orchestrator, payload)
            try:
                subscriber.deliver(reply)
            except Exception:
                logger.warning("Subscriber %s closed; ending socket", subscriber.subscriber_id)
                break
    finally:
        if subscriber is not None:
            orchestrator.broadcaster.unsubscribe(subscriber)
        if writer is not None:
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.warning("WebSocket writer failed", exc_info=True)
        if subscriber is not None:
            logger.info("WebSocket subscriber %s disconnected", subscriber.subscriber_id)

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from questarena_api.deps import Orchestrator, require_api_secret
from questarena_api.mappers import completion_to_api, profile_to_api, quest_to_api
from questarena_api.schemas import CompletionIn, ParticipationIn, ParticipationOut
from questarena_api.schemas import Quest as APIQuest
from questarena_api.schemas import QuestCompletion as APICompletion
from questarena_api.schemas import QuestList, TriggerIn, TriggerOut
from questarena_api.schemas import UserStats as APIUserStats

router = APIRouter(
    prefix="/api/quests",
    tags=["quests"],
    dependencies=[Depends(require_api_secret)],
)


@router.get("/active", response_model=QuestList)
async def list_active_quests(
    orchestrator: Orchestrator,
    conversation_id: Optional[str] = None,
) -> QuestList:
    quests = [quest_to_api(q) for q in orchestrator.list_active_quests(conversation_id)]
    return QuestList(quests=quests, count=len(quests))


@router.get("/leaderboard", response_model=List[APIUserStats])
async def leaderboard(
    orchestrator: Orchestrator,
    limit: int = Query(10, ge=1, le=100),
) -> List[APIUserStats]:
    return [profile_to_api(p) for p in orchestrator.leaderboard(limit)]


@router.get("/analytics")
async def quest_analytics(orchestrator: Orchestrator) -> Dict[str, Any]:
    return orchestrator.quest_analytics()


@router.post("/trigger", response_model=TriggerOut)
async def trigger_quest(body: TriggerIn, orchestrator: Orchestrator) -> TriggerOut:
    quest = await orchestrator.trigger_quest_creation(body.conversation_id, body.quest_master)
    return TriggerOut(quest=quest_to_api(quest))


@router.get("/user/{user_id}/stats", response_model=APIUserStats)
async def user_stats(user_id: str, orchestrator: Orchestrator) -> APIUserStats:
    return profile_to_api(orchestrator.get_user_stats(user_id))


@router.get("/user/{user_id}/history", response_model=List[APICompletion])
async def user_history(user_id: str, orchestrator: Orchestrator) -> List[APICompletion]:
    return [completion_to_api(c) for c in orchestrator.user_history(user_id)]


@router.get("/{quest_id}", response_model=APIQuest)
async def get_quest(quest_id: str, orchestrator: Orchestrator) -> APIQuest:
    return quest_to_api(orchestrator.get_quest(quest_id))


@router.post("/{quest_id}/join", response_model=ParticipationOut)
async def join_quest(
    quest_id: str, body: ParticipationIn, orchestrator: Orchestrator
) -> ParticipationOut:
    joined = orchestrator.join(quest_id, body.user_id)
    return ParticipationOut(success=joined, quest=quest_to_api(orchestrator.get_quest(quest_id)))


@router.post("/{quest_id}/leave", response_model=ParticipationOut)
async def leave_quest(
    quest_id: str, body: ParticipationIn, orchestrator: Orchestrator
) -> ParticipationOut:
    left = orchestrator.leave(quest_id, body.user_id)
    return ParticipationOut(success=left, quest=quest_to_api(orchestrator.get_quest(quest_id)))


@router.post("/{quest_id}/complete", response_model=APICompletion)
async def complete_quest(
    quest_id: str, body: CompletionIn, orchestrator: Orchestrator
) -> APICompletion:
    return completion_to_api(orchestrator.complete(quest_id, body.user_id, body.result))

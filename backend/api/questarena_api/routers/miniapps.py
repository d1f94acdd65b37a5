from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from questarena_api.deps import Orchestrator, require_api_secret
from questarena_api.mappers import miniapp_to_api
from questarena_api.schemas import MiniApp as APIMiniApp

router = APIRouter(
    prefix="/api/miniapps",
    tags=["miniapps"],
    dependencies=[Depends(require_api_secret)],
)


@router.get("", response_model=List[APIMiniApp])
async def list_active_miniapps(orchestrator: Orchestrator) -> List[APIMiniApp]:
    return [miniapp_to_api(m) for m in orchestrator.mini_apps.list_active()]


@router.get("/{quest_id}", response_model=APIMiniApp)
async def get_miniapp(quest_id: str, orchestrator: Orchestrator) -> APIMiniApp:
    record = orchestrator.get_mini_app(quest_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Mini app not found")
    return miniapp_to_api(record)

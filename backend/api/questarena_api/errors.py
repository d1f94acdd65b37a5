from __future__ import annotations

from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from questarena_core.domain.errors import (
    INTERNAL_ERROR,
    InvalidQuestDefinition,
    NotAParticipant,
    ProposerUnavailable,
    QuestAlreadyActive,
    QuestArenaError,
    QuestFull,
    QuestNotActive,
    QuestNotFound,
)
from questarena_core.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_ERROR: Dict[Type[QuestArenaError], int] = {
    QuestNotFound: 404,
    QuestNotActive: 409,
    QuestFull: 409,
    QuestAlreadyActive: 409,
    NotAParticipant: 403,
    InvalidQuestDefinition: 422,
    ProposerUnavailable: 503,
}


def status_for(exc: QuestArenaError) -> int:
    for error_type, code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return code
    return 400


async def _quest_arena_error_handler(_request: Request, exc: QuestArenaError) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content=exc.to_dict())


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(status_code=500, content=dict(INTERNAL_ERROR))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(QuestArenaError, _quest_arena_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)

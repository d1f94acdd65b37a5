"""
FastAPI dependencies: engine access and API-secret authentication.
"""

import hmac
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from questarena_core.infra import settings
from questarena_core.services.orchestrator import QuestOrchestrator


def get_orchestrator(request: Request) -> QuestOrchestrator:
    return request.app.state.orchestrator


async def require_api_secret(
    x_api_secret: Annotated[Optional[str], Header()] = None,
) -> None:
    """
    Reject requests whose ``x-api-secret`` header does not match.

    When no secret is configured the check is disabled (local development).
    """
    expected = settings.API_SECRET_KEY
    if not expected:
        return
    if x_api_secret is None or not hmac.compare_digest(x_api_secret, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


Orchestrator = Annotated[QuestOrchestrator, Depends(get_orchestrator)]

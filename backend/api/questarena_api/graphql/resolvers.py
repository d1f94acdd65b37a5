# questarena_api/graphql/resolvers.py
"""
GraphQL Query and Mutation resolvers.

Domain errors are re-raised as ``GraphQLError`` with their ``kind`` in the
error ``extensions``; anything else is masked by the schema.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional

import strawberry
from graphql import GraphQLError
from strawberry.types import Info

from questarena_api.graphql.converters import (
    domain_completion_to_gql,
    domain_profile_to_gql,
    domain_quest_to_gql,
)
from questarena_api.graphql.types import Quest, QuestCompletion, UserStats
from questarena_core.domain.errors import QuestArenaError
from questarena_core.domain.models.QuestModel import Quest as DQuest
from questarena_core.services.orchestrator import QuestOrchestrator


def _orchestrator(info: Info) -> QuestOrchestrator:
    return info.context["request"].app.state.orchestrator


def _to_gql(o: QuestOrchestrator, quest: DQuest) -> Quest:
    record = o.get_mini_app(str(quest.quest_id))
    return domain_quest_to_gql(quest, record.url if record else None)


@contextmanager
def _domain_errors() -> Iterator[None]:
    try:
        yield
    except QuestArenaError as exc:
        raise GraphQLError(exc.message, extensions={"kind": exc.kind}) from exc


# =============================================================================
# Queries
# =============================================================================

@strawberry.type
class Query:
    @strawberry.field
    async def active_quests(
        self, info: Info, conversation_id: Optional[str] = None
    ) -> List[Quest]:
        o = _orchestrator(info)
        with _domain_errors():
            return [_to_gql(o, q) for q in o.list_active_quests(conversation_id)]

    @strawberry.field
    async def quest(self, info: Info, quest_id: str) -> Quest:
        o = _orchestrator(info)
        with _domain_errors():
            return _to_gql(o, o.get_quest(quest_id))

    @strawberry.field
    async def user_stats(self, info: Info, user_id: str) -> UserStats:
        with _domain_errors():
            return domain_profile_to_gql(_orchestrator(info).get_user_stats(user_id))

    @strawberry.field
    async def leaderboard(self, info: Info, limit: int = 10) -> List[UserStats]:
        with _domain_errors():
            return [domain_profile_to_gql(p) for p in _orchestrator(info).leaderboard(limit)]


# =============================================================================
# Mutations
# =============================================================================

@strawberry.type
class Mutation:
    @strawberry.mutation
    async def join_quest(self, info: Info, quest_id: str, user_id: str) -> bool:
        with _domain_errors():
            return _orchestrator(info).join(quest_id, user_id)

    @strawberry.mutation
    async def leave_quest(self, info: Info, quest_id: str, user_id: str) -> bool:
        with _domain_errors():
            return _orchestrator(info).leave(quest_id, user_id)

    @strawberry.mutation
    async def complete_quest(
        self, info: Info, quest_id: str, user_id: str
    ) -> QuestCompletion:
        with _domain_errors():
            return domain_completion_to_gql(_orchestrator(info).complete(quest_id, user_id))

    @strawberry.mutation
    async def trigger_quest_creation(
        self, info: Info, conversation_id: str, quest_master: Optional[str] = None
    ) -> Quest:
        o = _orchestrator(info)
        with _domain_errors():
            quest = await o.trigger_quest_creation(conversation_id, quest_master)
            return _to_gql(o, quest)

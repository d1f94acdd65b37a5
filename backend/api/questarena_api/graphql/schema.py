# questarena_api/graphql/schema.py
"""
Strawberry GraphQL schema definition.
"""
import strawberry
from graphql import GraphQLError
from strawberry.extensions import MaskErrors
from strawberry.fastapi import GraphQLRouter

from questarena_api.graphql.resolvers import Mutation, Query
from questarena_core.domain.errors import INTERNAL_ERROR
from questarena_core.utils.logging import get_logger

logger = get_logger(__name__)


def _is_internal(error: GraphQLError) -> bool:
    # Query syntax/validation errors have no original error; domain errors
    # arrive wrapped in a GraphQLError that already carries their kind.
    original = error.original_error
    return original is not None and not isinstance(original, GraphQLError)


class MaskInternalErrors(MaskErrors):
    """Replaces unexpected resolver failures with the generic internal error."""

    def anonymise_error(self, error: GraphQLError) -> GraphQLError:
        logger.error(
            "GraphQL resolver failed at %s", error.path, exc_info=error.original_error
        )
        masked = super().anonymise_error(error)
        masked.extensions = {"kind": INTERNAL_ERROR["kind"]}
        return masked


# Create the schema
schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
    extensions=[
        MaskInternalErrors(
            should_mask_error=_is_internal,
            error_message=INTERNAL_ERROR["message"],
        )
    ],
)

# Create the GraphQL router for FastAPI
graphql_router = GraphQLRouter(schema)

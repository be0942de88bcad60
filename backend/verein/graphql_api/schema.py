"""
Verein Backend - GraphQL Schema
================================

What:  Query and Mutation roots of the GraphQL interface and the FastAPI
       router serving them at /graphql.
How:   Resolvers are thin: they take the request's AsyncSession from the
       context, call the read/write services and convert the result into
       strawberry types. Domain exceptions propagate and are mapped to typed
       errors by DomainErrorExtension.
Who:   Mounted by main.create_app().

Operations:
    query    verein(id), vereine(input: Suchkriterien), namen(prefix)
    mutation createVerein(input), updateVerein(id, version, input), deleteVerein(id)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional
from uuid import UUID

import strawberry
from fastapi import Depends
from graphql import GraphQLError
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.fastapi import GraphQLRouter
from strawberry.types import ExecutionContext, Info

from verein.config import settings
from verein.database import get_db_session
from verein.exceptions import DatabaseError, NotFoundError, VereinError
from verein.graphql_api.errors import DomainErrorExtension
from verein.graphql_api.types import (
    CreatePayload,
    Suchkriterien,
    UpdatePayload,
    VereinInput,
    VereinType,
)
from verein.services.verein_data import parse_id
from verein.services.verein_read_service import verein_read_service
from verein.services.verein_write_service import verein_write_service

logger = logging.getLogger(__name__)


def _parse_id(raw: strawberry.ID) -> UUID:
    # A malformed ID cannot belong to any Verein
    verein_id = parse_id(raw)
    if verein_id is None:
        raise NotFoundError(criteria={"id": str(raw)})
    return verein_id


@asynccontextmanager
async def _session(info: Info) -> AsyncIterator[AsyncSession]:
    # Sibling root fields resolve concurrently; an AsyncSession does not allow that
    async with info.context["lock"]:
        yield info.context["db"]


# ══════════════════════════════════════════════════════════════════════════
# Query
# ══════════════════════════════════════════════════════════════════════════


@strawberry.type
class Query:
    @strawberry.field(description="A single Verein by ID")
    async def verein(self, info: Info, id: strawberry.ID) -> Optional[VereinType]:
        logger.debug("verein: id=%s", id)
        verein_id = _parse_id(id)
        async with _session(info) as db:
            verein = await verein_read_service.find_by_id(db, verein_id)
        return VereinType.from_entity(verein)

    @strawberry.field(description="Vereine matching all given criteria; all without input")
    async def vereine(
        self, info: Info, input: Optional[Suchkriterien] = None
    ) -> List[VereinType]:
        criteria = input.to_criteria() if input is not None else {}
        logger.debug("vereine: criteria=%s", criteria)
        async with _session(info) as db:
            vereine = await verein_read_service.find(db, criteria)
        return [VereinType.from_entity(v) for v in vereine]

    @strawberry.field(description="Distinct names starting with a prefix")
    async def namen(self, info: Info, prefix: str) -> List[str]:
        async with _session(info) as db:
            return await verein_read_service.find_namen_by_prefix(db, prefix)


# ══════════════════════════════════════════════════════════════════════════
# Mutation
# ══════════════════════════════════════════════════════════════════════════


@strawberry.type
class Mutation:
    @strawberry.mutation(name="createVerein")
    async def create_verein(self, info: Info, input: VereinInput) -> Optional[CreatePayload]:
        logger.debug("createVerein: %s", input)
        data = input.to_data()
        async with _session(info) as db:
            verein = await verein_write_service.create(db, data)
        return CreatePayload(id=strawberry.ID(str(verein.id)), version=verein.version)

    @strawberry.mutation(name="updateVerein")
    async def update_verein(
        self, info: Info, id: strawberry.ID, version: int, input: VereinInput
    ) -> Optional[UpdatePayload]:
        logger.debug("updateVerein: id=%s, version=%d", id, version)
        verein_id = _parse_id(id)
        data = input.to_data()
        async with _session(info) as db:
            verein = await verein_write_service.update(db, verein_id, data, version)
        return UpdatePayload(id=strawberry.ID(str(verein.id)), version=verein.version)

    @strawberry.mutation(name="deleteVerein")
    async def delete_verein(self, info: Info, id: strawberry.ID) -> bool:
        verein_id = parse_id(id)
        if verein_id is None:
            # Nothing to delete
            return True
        async with _session(info) as db:
            await verein_write_service.delete(db, verein_id)
        return True


# ══════════════════════════════════════════════════════════════════════════
# Schema & Router
# ══════════════════════════════════════════════════════════════════════════


class VereinSchema(strawberry.Schema):
    """Logs expected domain errors at DEBUG instead of with a traceback."""

    def process_errors(
        self,
        errors: List[GraphQLError],
        execution_context: Optional[ExecutionContext] = None,
    ) -> None:
        unexpected = []
        for error in errors:
            original = error.original_error
            if isinstance(original, VereinError) and not isinstance(original, DatabaseError):
                logger.debug("GraphQL domain error: %s", original.message)
            else:
                unexpected.append(error)
        if unexpected:
            super().process_errors(unexpected, execution_context)


schema = VereinSchema(
    query=Query,
    mutation=Mutation,
    extensions=[DomainErrorExtension],
)


async def get_context(db: AsyncSession = Depends(get_db_session)) -> Dict[str, Any]:
    """One AsyncSession per GraphQL request, shared by all resolvers."""
    return {"db": db, "lock": asyncio.Lock()}


graphql_router = GraphQLRouter(
    schema,
    context_getter=get_context,
    graphql_ide="graphiql" if settings.graphql_ide else None,
)

"""
Verein Backend - Verein Read Service
=====================================

What:  Query-only access to Verein entities: by ID, by search criteria and
       name completion by prefix.
How:   Builds SQLAlchemy select() statements; never flushes or commits.
Who:   Called by the REST GET routes and the GraphQL query resolvers.

Search Criteria:
    name   case-insensitive substring of the name
    email  case-insensitive substring of any owned e-mail address
    plz    prefix of the postal code
    ort    case-insensitive prefix of the city

    Several criteria combine with AND. An unknown key is an error
    (InvalidCriteriaError), not a silently ignored filter.
"""

import logging
from typing import Callable, Dict, List, Mapping
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from verein.exceptions import DatabaseError, InvalidCriteriaError, NotFoundError
from verein.models.verein import Email, Verein

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _name(value: str) -> ColumnElement[bool]:
    return Verein.name.ilike(f"%{_escape_like(value)}%", escape="\\")


def _email(value: str) -> ColumnElement[bool]:
    return Verein.emails.any(Email.email.ilike(f"%{_escape_like(value)}%", escape="\\"))


def _plz(value: str) -> ColumnElement[bool]:
    return Verein.plz.like(f"{_escape_like(value)}%", escape="\\")


def _ort(value: str) -> ColumnElement[bool]:
    return Verein.ort.ilike(f"{_escape_like(value)}%", escape="\\")


CRITERIA: Dict[str, Callable[[str], ColumnElement[bool]]] = {
    "name": _name,
    "email": _email,
    "plz": _plz,
    "ort": _ort,
}


class VereinReadService:
    """
    Read side of the Verein domain.

    Stateless; the session is passed per call so every request works in its
    own unit of work.
    """

    async def find_by_id(self, db: AsyncSession, verein_id: UUID) -> Verein:
        """
        Retrieve a single Verein with its e-mails and revenues.

        Raises:
            NotFoundError: No Verein with this ID (→ 404)
            DatabaseError: Query execution failed (→ 500)
        """
        logger.debug("find_by_id: id=%s", verein_id)
        try:
            result = await db.execute(select(Verein).where(Verein.id == verein_id))
            verein = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching Verein %s: %s", verein_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the Verein. Please try again.",
                context={"id": str(verein_id)},
            )

        if verein is None:
            raise NotFoundError(verein_id=verein_id)
        logger.debug("find_by_id: %r", verein)
        return verein

    async def find(self, db: AsyncSession, criteria: Mapping[str, str]) -> List[Verein]:
        """
        Find every Verein matching all criteria.

        Args:
            db: Async database session
            criteria: field name → search value; empty means "all"

        Returns:
            The matching Vereine ordered by name; an empty list if none match

        Raises:
            InvalidCriteriaError: A key is not a searchable field
        """
        logger.debug("find: criteria=%s", dict(criteria))

        query = select(Verein)
        for key, value in criteria.items():
            build = CRITERIA.get(key)
            if build is None:
                raise InvalidCriteriaError(key)
            query = query.where(build(value))
        query = query.order_by(Verein.name, Verein.id)

        try:
            result = await db.execute(query)
            vereine = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error searching Vereine: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve Vereine. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.debug("find: %d result(s)", len(vereine))
        return vereine

    async def find_namen_by_prefix(self, db: AsyncSession, prefix: str) -> List[str]:
        """Distinct names starting with `prefix` (case-insensitive), sorted."""
        logger.debug("find_namen_by_prefix: %s", prefix)
        query = (
            select(Verein.name)
            .where(func.lower(Verein.name).like(f"{_escape_like(prefix.lower())}%", escape="\\"))
            .distinct()
            .order_by(Verein.name)
        )
        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error listing names: %s", str(e))
            raise DatabaseError(message="Could not retrieve names. Please try again.")
        return list(result.scalars().all())


# ── Singleton Instance ────────────────────────────────────────────────────
verein_read_service = VereinReadService()

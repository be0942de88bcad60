"""
Verein Backend - Verein Write Service
======================================

What:  Create, update and delete Vereine with field validation, global e-mail
       uniqueness and optimistic concurrency.
How:   Each public method is one unit of work: check → mutate → flush →
       commit. Any failure after the first mutation rolls the session back,
       so a Verein and its children are either written together or not at all.
Who:   Called by the REST write routes and the GraphQL mutation resolvers.

Order of Checks:
    create:  field rules → e-mail uniqueness → INSERT (version 0)
    update:  exists → version matches → field rules → e-mail uniqueness
             → UPDATE ... WHERE id = :id AND version = :expected (version + 1)
    delete:  DELETE children and row by ID, without a version condition;
             a missing ID is a no-op

    Nothing is written before every check has passed. The version check is
    done twice: once against the freshly loaded row, and once by the UPDATE
    itself, which catches a concurrent commit between the two (StaleDataError).
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from verein.exceptions import (
    DatabaseError,
    EmailExistsError,
    NotFoundError,
    VersionOutdatedError,
)
from verein.models.verein import Adresse, Email, Umsatz, Verein
from verein.services.verein_data import VereinData, validate_verein_data

logger = logging.getLogger(__name__)


class VereinWriteService:
    """
    Write side of the Verein domain.

    Error Handling Strategy:
        Domain failures are raised before the session is touched. Failures
        during flush/commit are rolled back and translated: StaleDataError →
        VersionOutdatedError, unique violation on e-mail → EmailExistsError,
        anything else → DatabaseError.
    """

    async def create(self, db: AsyncSession, data: VereinData) -> Verein:
        """
        Persist a new Verein.

        Returns:
            The stored Verein with generated id and version 0

        Raises:
            ConstraintViolationsError: payload breaks field rules
            EmailExistsError: an e-mail is already stored
            DatabaseError: persistence failed unexpectedly
        """
        logger.debug("create: %s", data)
        valid = validate_verein_data(data)
        await self._ensure_emails_free(db, valid.emails)

        verein = Verein(
            name=valid.name,
            gruendungsdatum=valid.gruendungsdatum,
            homepage=valid.homepage,
            adresse=_to_adresse(valid),
            emails=[Email(email=address) for address in valid.emails],
            umsaetze=[Umsatz(betrag=u.betrag, waehrung=u.waehrung) for u in valid.umsaetze],
        )
        db.add(verein)
        await self._commit(db, emails=valid.emails)

        logger.info("Verein created: %s (version=%d)", verein.id, verein.version)
        return verein

    async def update(
        self,
        db: AsyncSession,
        verein_id: UUID,
        data: VereinData,
        version: int,
    ) -> Verein:
        """
        Replace the data of an existing Verein.

        Args:
            db: Async database session
            verein_id: ID of the Verein to update
            data: The complete new data
            version: The version the caller last read

        Returns:
            The updated Verein, version incremented by exactly 1

        Raises:
            NotFoundError: no Verein with this ID
            VersionOutdatedError: `version` is not the stored version
            ConstraintViolationsError: payload breaks field rules
            EmailExistsError: an e-mail belongs to another Verein
        """
        logger.debug("update: id=%s, version=%d, %s", verein_id, version, data)

        result = await db.execute(
            select(Verein)
            .where(Verein.id == verein_id)
            .execution_options(populate_existing=True)
        )
        verein = result.scalar_one_or_none()
        if verein is None:
            raise NotFoundError(verein_id=verein_id)

        if version != verein.version:
            logger.debug("update: version %d outdated, current=%d", version, verein.version)
            raise VersionOutdatedError(expected=version, actual=verein.version)

        valid = validate_verein_data(data)
        await self._ensure_emails_free(db, valid.emails, owner_id=verein_id)

        verein.name = valid.name
        verein.gruendungsdatum = valid.gruendungsdatum
        verein.homepage = valid.homepage
        verein.adresse = _to_adresse(valid)
        # Keep Email rows for unchanged addresses; removed ones become orphans
        # and are deleted, which avoids DELETE/INSERT of the same unique value.
        current = {e.email: e for e in verein.emails}
        verein.emails = [current.get(address) or Email(email=address) for address in valid.emails]
        verein.umsaetze = [Umsatz(betrag=u.betrag, waehrung=u.waehrung) for u in valid.umsaetze]
        # Always dirties the row, so the UPDATE (and the version bump) happens
        # even when only child collections changed.
        verein.aktualisiert = datetime.now(timezone.utc)

        await self._commit(db, emails=valid.emails, owner_id=verein_id, expected=version)

        logger.info("Verein updated: %s (version=%d)", verein.id, verein.version)
        return verein

    async def delete(self, db: AsyncSession, verein_id: UUID) -> None:
        """
        Delete a Verein and everything it owns. Deleting a missing ID is not an error.

        Plain DELETE statements without a version condition: a row that
        another session changed or removed in the meantime is still deleted,
        or is already gone.
        """
        logger.debug("delete: id=%s", verein_id)
        try:
            await db.execute(delete(Email).where(Email.verein_id == verein_id))
            await db.execute(delete(Umsatz).where(Umsatz.verein_id == verein_id))
            result = await db.execute(delete(Verein).where(Verein.id == verein_id))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error while deleting Verein: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

        if result.rowcount:
            logger.info("Verein deleted: %s", verein_id)
        else:
            logger.debug("delete: no Verein %s, nothing to do", verein_id)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _ensure_emails_free(
        self,
        db: AsyncSession,
        emails: Iterable[str],
        owner_id: Optional[UUID] = None,
    ) -> None:
        """Raise EmailExistsError if any address is stored for another Verein."""
        emails = list(emails)
        if not emails:
            return
        query = select(Email.email).where(Email.email.in_(emails))
        if owner_id is not None:
            query = query.where(Email.verein_id != owner_id)
        taken = (await db.execute(query.limit(1))).scalar_one_or_none()
        if taken is not None:
            logger.debug("email %s already exists", taken)
            raise EmailExistsError(taken)

    async def _commit(
        self,
        db: AsyncSession,
        emails: Iterable[str] = (),
        owner_id: Optional[UUID] = None,
        expected: Optional[int] = None,
    ) -> None:
        """Flush and commit; on failure roll back and raise the matching domain error."""
        try:
            await db.flush()
            await db.commit()
        except StaleDataError as e:
            await db.rollback()
            if expected is None:
                # Only a versioned update can go stale
                logger.error("Unexpected stale data while writing Verein: %s", str(e))
                raise DatabaseError(context={"error_type": type(e).__name__})
            actual = None
            if owner_id is not None:
                actual = (
                    await db.execute(select(Verein.version).where(Verein.id == owner_id))
                ).scalar_one_or_none()
            logger.debug("concurrent update detected: expected=%s, actual=%s", expected, actual)
            raise VersionOutdatedError(expected=expected, actual=actual)
        except IntegrityError as e:
            await db.rollback()
            # A concurrent writer may have claimed an e-mail after our check
            await self._ensure_emails_free(db, emails, owner_id=owner_id)
            logger.error("Integrity error while writing Verein: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error while writing Verein: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})


def _to_adresse(data: VereinData) -> Adresse:
    adresse = data.adresse
    return Adresse(strasse=adresse.strasse, plz=adresse.plz, ort=adresse.ort)


# ── Singleton Instance ────────────────────────────────────────────────────
verein_write_service = VereinWriteService()

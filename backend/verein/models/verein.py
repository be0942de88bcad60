"""
Verein Backend - Verein SQLAlchemy Models
==========================================

What:  ORM mapping of the Verein aggregate: `verein`, `verein_email` and
       `umsatz` tables plus the embedded Adresse value object.
How:   Declarative SQLAlchemy 2.0 mapping. Alembic reads Base.metadata for
       migrations; the test suite creates the same tables on SQLite.
Who:   Loaded and persisted by the read and write services only.

Table Design:
    - UUID primary key generated in Python (portable across PostgreSQL/SQLite)
    - version: optimistic-concurrency column. SQLAlchemy adds
      `WHERE version = :loaded` to every UPDATE and raises StaleDataError when
      no row matches. New rows start at 0; each UPDATE adds exactly 1.
    - Adresse: composite over strasse/plz/ort columns of the verein row
    - verein_email.email: UNIQUE, enforces global e-mail uniqueness
    - Child tables: ON DELETE CASCADE, and ORM cascade "all, delete-orphan"
      so deleting through the session removes them as well
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship

from verein.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _next_version(current: Optional[int]) -> int:
    """Version generator: INSERT gets 0, every UPDATE gets current + 1."""
    return 0 if current is None else current + 1


@dataclass
class Adresse:
    """Postal address of a Verein. A value object without identity."""

    strasse: Optional[str]
    plz: str
    ort: str


class Email(Base):
    """An e-mail address owned by exactly one Verein."""

    __tablename__ = "verein_email"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    verein_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("verein.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(String(254), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Email(email='{self.email}')>"


class Umsatz(Base):
    """Revenue entry: amount plus ISO 4217 currency code."""

    __tablename__ = "umsatz"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    verein_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("verein.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    betrag: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    waehrung: Mapped[str] = mapped_column(String(3), nullable=False)

    def __repr__(self) -> str:
        return f"<Umsatz(betrag={self.betrag}, waehrung='{self.waehrung}')>"


class Verein(Base):
    """
    A club/association. Aggregate root owning its address, e-mails and revenues.

    Lifecycle:
        1. Created by VereinWriteService.create (version = 0)
        2. Updated by VereinWriteService.update (version + 1 per update)
        3. Deleted by VereinWriteService.delete, children go with it
    """

    __tablename__ = "verein"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    name: Mapped[str] = mapped_column(String(40), nullable=False)
    gruendungsdatum: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    homepage: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    # ── Adresse (embedded) ────────────────────────────────────────────────
    strasse: Mapped[Optional[str]] = mapped_column(String(60), nullable=True)
    plz: Mapped[str] = mapped_column(String(5), nullable=False)
    ort: Mapped[str] = mapped_column(String(40), nullable=False)
    adresse: Mapped[Adresse] = composite("strasse", "plz", "ort")

    # ── Owned collections ─────────────────────────────────────────────────
    # selectin loading: async sessions cannot lazy-load on attribute access
    emails: Mapped[List[Email]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=Email.email,
    )
    umsaetze: Mapped[List[Umsatz]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    erzeugt: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    aktualisiert: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    __mapper_args__ = {
        "version_id_col": version,
        "version_id_generator": _next_version,
    }

    __table_args__ = (
        Index("idx_verein_name", "name"),
        Index("idx_verein_plz", "plz"),
    )

    @property
    def email_addresses(self) -> List[str]:
        return [e.email for e in self.emails]

    def __repr__(self) -> str:
        return f"<Verein(id={self.id}, name='{self.name}', version={self.version})>"

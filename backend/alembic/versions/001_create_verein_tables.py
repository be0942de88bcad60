"""Create verein tables

Revision ID: 001
Revises: None
Create Date: 2024-05-06 00:00:00.000000+00:00

What:  Creates `verein` with its embedded address, plus the owned
       `verein_email` and `umsatz` tables.
How:   Portable column types (sa.Uuid is native UUID on PostgreSQL and
       CHAR(32) on SQLite), foreign keys with ON DELETE CASCADE.

Rollback: downgrade() drops all three tables (destructive, all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "verein",
        sa.Column("id", sa.Uuid(), nullable=False),
        # 0 on insert, +1 per update; checked by every UPDATE
        sa.Column(
            "version",
            sa.Integer(),
            nullable=False,
            comment="Optimistic concurrency version",
        ),
        sa.Column("name", sa.String(40), nullable=False),
        sa.Column("gruendungsdatum", sa.Date(), nullable=True),
        sa.Column("homepage", sa.String(2048), nullable=True),
        # Adresse, embedded
        sa.Column("strasse", sa.String(60), nullable=True),
        sa.Column("plz", sa.String(5), nullable=False),
        sa.Column("ort", sa.String(40), nullable=False),
        sa.Column(
            "erzeugt",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "aktualisiert",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_verein_name", "verein", ["name"])
    op.create_index("idx_verein_plz", "verein", ["plz"])

    op.create_table(
        "verein_email",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("verein_id", sa.Uuid(), nullable=False),
        # Unique across all Vereine
        sa.Column("email", sa.String(254), nullable=False),
        sa.ForeignKeyConstraint(["verein_id"], ["verein.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_verein_email_email"),
    )
    op.create_index("ix_verein_email_verein_id", "verein_email", ["verein_id"])

    op.create_table(
        "umsatz",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("verein_id", sa.Uuid(), nullable=False),
        sa.Column("betrag", sa.Numeric(12, 2), nullable=False),
        sa.Column("waehrung", sa.String(3), nullable=False, comment="ISO 4217 code"),
        sa.ForeignKeyConstraint(["verein_id"], ["verein.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_umsatz_verein_id", "umsatz", ["verein_id"])


def downgrade() -> None:
    """Drop all Verein tables. WARNING: destructive."""
    op.drop_index("ix_umsatz_verein_id", table_name="umsatz")
    op.drop_table("umsatz")
    op.drop_index("ix_verein_email_verein_id", table_name="verein_email")
    op.drop_table("verein_email")
    op.drop_index("idx_verein_plz", table_name="verein")
    op.drop_index("idx_verein_name", table_name="verein")
    op.drop_table("verein")

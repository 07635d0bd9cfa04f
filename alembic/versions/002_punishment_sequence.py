"""Per-user punishment sequence — unique slot that escalation writes claim.

Revision ID: 002_punishment_sequence
Revises: 001_initial
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002_punishment_sequence"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("user_punishments", sa.Column("sequence", sa.Integer, nullable=True))
    # Existing history numbered in creation order
    op.execute(
        """
        UPDATE user_punishments AS p
        SET sequence = ordered.n
        FROM (
            SELECT id, ROW_NUMBER() OVER (
                PARTITION BY user_hash ORDER BY created_at, id
            ) AS n
            FROM user_punishments
        ) AS ordered
        WHERE p.id = ordered.id
        """
    )
    op.alter_column("user_punishments", "sequence", nullable=False)
    op.create_unique_constraint(
        "uq_user_punishments_user_sequence", "user_punishments", ["user_hash", "sequence"],
    )


def downgrade() -> None:
    op.drop_constraint("uq_user_punishments_user_sequence", "user_punishments", type_="unique")
    op.drop_column("user_punishments", "sequence")

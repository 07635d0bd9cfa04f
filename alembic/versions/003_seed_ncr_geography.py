"""Seed the NCR dominion and its fifteen campus territories.

Revision ID: 003_seed_ncr_geography
Revises: 002_punishment_sequence
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from tribunal.infrastructure.geography_seed import NCR_DOMINION, NCR_TERRITORIES

revision: str = "003_seed_ncr_geography"
down_revision: Union[str, None] = "002_punishment_sequence"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

dominions = sa.table("dominions", sa.column("id", sa.String), sa.column("name", sa.String))
territories = sa.table(
    "territories",
    sa.column("id", sa.String),
    sa.column("name", sa.String),
    sa.column("dominion_id", sa.String),
)


def upgrade() -> None:
    dominion_id, dominion_name = NCR_DOMINION
    op.bulk_insert(dominions, [{"id": dominion_id, "name": dominion_name}])
    op.bulk_insert(territories, [
        {"id": territory_id, "name": name, "dominion_id": dominion_id}
        for name, territory_id in NCR_TERRITORIES.items()
    ])


def downgrade() -> None:
    dominion_id, _ = NCR_DOMINION
    op.execute(territories.delete().where(territories.c.dominion_id == dominion_id))
    op.execute(dominions.delete().where(dominions.c.id == dominion_id))

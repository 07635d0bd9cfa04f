"""Initial schema — geography, moderators, punishments, audit trail, fingerprints.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "dominions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
    )

    op.create_table(
        "territories",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("dominion_id", sa.String(64), sa.ForeignKey("dominions.id"), nullable=False),
    )
    op.create_index("ix_territories_dominion_id", "territories", ["dominion_id"])

    op.create_table(
        "moderators",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_hash", sa.String(80), nullable=False, unique=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("scope_type", sa.String(20), nullable=False),
        sa.Column("scope_id", sa.String(64), nullable=True),
        sa.Column("appointed_by", UUID(as_uuid=True), nullable=True),
        sa.Column("appointed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "user_punishments",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_hash", sa.String(80), nullable=False),
        sa.Column("punishment_level", sa.Integer, nullable=False),
        sa.Column("scope_type", sa.String(20), nullable=False),
        sa.Column("scope_id", sa.String(64), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("applied_by", UUID(as_uuid=True), nullable=False),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("punishment_level BETWEEN 1 AND 6", name="ck_punishment_level_range"),
    )
    op.create_index(
        "ix_user_punishments_user_created", "user_punishments", ["user_hash", "created_at"],
    )

    op.create_table(
        "mod_actions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("moderator_id", UUID(as_uuid=True), nullable=False),
        sa.Column("action_type", sa.String(30), nullable=False),
        sa.Column("target_user_hash", sa.String(80), nullable=True),
        sa.Column("target_content_id", sa.String(64), nullable=True),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("metadata", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_mod_actions_moderator_id", "mod_actions", ["moderator_id"])
    op.create_index("ix_mod_actions_target_user_hash", "mod_actions", ["target_user_hash"])
    op.create_index("ix_mod_actions_created_at", "mod_actions", ["created_at"])

    op.create_table(
        "user_fingerprints",
        sa.Column("user_hash", sa.String(80), primary_key=True),
        sa.Column("device_hash", sa.String(80), nullable=True),
        sa.Column("behavior_signature", sa.JSON, nullable=False),
        sa.Column("time_pattern", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("user_fingerprints")
    op.drop_index("ix_mod_actions_created_at", table_name="mod_actions")
    op.drop_index("ix_mod_actions_target_user_hash", table_name="mod_actions")
    op.drop_index("ix_mod_actions_moderator_id", table_name="mod_actions")
    op.drop_table("mod_actions")
    op.drop_index("ix_user_punishments_user_created", table_name="user_punishments")
    op.drop_table("user_punishments")
    op.drop_table("moderators")
    op.drop_index("ix_territories_dominion_id", table_name="territories")
    op.drop_table("territories")
    op.drop_table("dominions")

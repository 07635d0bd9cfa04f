"""UserPunishment ORM — one rung of the ladder applied to one user in one scope.

Invariants:
    - punishment_level in 1..6
    - expires_at NULL = permanent
    - Rows are never deleted; escalation inserts, unban sets expires_at to the unban time
    - (user_hash, sequence) is unique: the nth sanction of a user can be written once

Design Decisions:
    - (user_hash, created_at) index: history and effective-punishment reads are per user
    - sequence is the compare-and-swap slot for escalation across workers
      (ADR: per-process locks do not span replicas)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Text, Integer, DateTime, CheckConstraint, Index, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from tribunal.db.base import Base


class UserPunishment(Base):
    """Persisted sanction."""
    __tablename__ = "user_punishments"
    __table_args__ = (
        CheckConstraint(
            "punishment_level BETWEEN 1 AND 6", name="ck_punishment_level_range",
        ),
        Index("ix_user_punishments_user_created", "user_hash", "created_at"),
        UniqueConstraint("user_hash", "sequence", name="uq_user_punishments_user_sequence"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_hash: Mapped[str] = mapped_column(String(80), nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    punishment_level: Mapped[int] = mapped_column(Integer, nullable=False)
    scope_type: Mapped[str] = mapped_column(String(20), nullable=False)
    scope_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    applied_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False,
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

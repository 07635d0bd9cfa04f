"""Moderator ORM — one appointed office per row.

Invariants:
    - scope_id is NULL iff scope_type == 'global'
    - user_hash is unique: one office per account
    - appointed_by is NULL only for the bootstrapped prime sovereign

Design Decisions:
    - Removal deletes the row; the appoint_mod / remove_mod audit entries keep the history
    - No FK from mod_actions.moderator_id: audit rows outlive the office
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from tribunal.db.base import Base


class Moderator(Base):
    """Appointed office holder."""
    __tablename__ = "moderators"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_hash: Mapped[str] = mapped_column(
        String(80), nullable=False, unique=True,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    scope_type: Mapped[str] = mapped_column(String(20), nullable=False)
    scope_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    appointed_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    appointed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

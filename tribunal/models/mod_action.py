"""ModAction ORM — append-only audit trail of every moderation decision.

Invariants:
    - reason is non-empty (enforced in core before insert)
    - Rows are inserted once and never updated or deleted

Design Decisions:
    - JSON column for metadata: typed AuditMetadata flattened by core, extra keys pass through
    - column name action_metadata: "metadata" is reserved on declarative classes
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from tribunal.db.base import Base


class ModAction(Base):
    """Audit entry."""
    __tablename__ = "mod_actions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    moderator_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    action_type: Mapped[str] = mapped_column(String(30), nullable=False)
    target_user_hash: Mapped[str | None] = mapped_column(
        String(80), nullable=True, index=True,
    )
    target_content_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True,
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    action_metadata: Mapped[dict] = mapped_column(
        "metadata", JSON, nullable=False, default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

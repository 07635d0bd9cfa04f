"""UserFingerprint ORM — per-user behavior and time-activity summaries.

Invariants:
    - Keyed by user_hash only; no email, account id or other reversible identity
    - behavior_signature / time_pattern hold the core dataclasses' to_dict() output

Design Decisions:
    - JSON columns: bounded windows (24/5/50 entries) stay small, read and written whole
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from tribunal.db.base import Base


class UserFingerprint(Base):
    """Derived per-user summaries."""
    __tablename__ = "user_fingerprints"

    user_hash: Mapped[str] = mapped_column(String(80), primary_key=True)
    device_hash: Mapped[str | None] = mapped_column(String(80), nullable=True)
    behavior_signature: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=dict,
    )
    time_pattern: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=dict,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

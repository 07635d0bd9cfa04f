"""Geography ORM — dominions and the territories (campuses) they own.

Invariants:
    - Every territory belongs to exactly one dominion
    - ids are opaque strings shared with the feed service

Design Decisions:
    - String primary keys: scope ids arrive from the feed as strings and are compared as such
    - Backs the TerritoryDirectory collaborator; nothing else in the engine reads geography
"""

from sqlalchemy import String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tribunal.db.base import Base


class Dominion(Base):
    """Regional grouping of territories."""
    __tablename__ = "dominions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    territories: Mapped[list["Territory"]] = relationship(
        "Territory", back_populates="dominion", lazy="selectin",
    )


class Territory(Base):
    """A single campus."""
    __tablename__ = "territories"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    dominion_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("dominions.id"), nullable=False, index=True,
    )

    dominion: Mapped["Dominion"] = relationship(
        "Dominion", back_populates="territories",
    )

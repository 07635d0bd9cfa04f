"""ORM Models — SQLAlchemy declarative models for moderation entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - mod_actions is append-only; no code path issues UPDATE or DELETE against it
    - No table stores reversible identity: users appear only as user_hash

Design Decisions:
    - One file per entity for locality (ADR: ExMA max 3-4 files to understand a feature)
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from tribunal.models.geography import Dominion, Territory  # noqa: F401
from tribunal.models.moderator import Moderator  # noqa: F401
from tribunal.models.user_punishment import UserPunishment  # noqa: F401
from tribunal.models.mod_action import ModAction  # noqa: F401
from tribunal.models.user_fingerprint import UserFingerprint  # noqa: F401

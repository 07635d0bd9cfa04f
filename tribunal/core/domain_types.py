"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserHash / DeviceHash are opaque one-way identifiers (never reversible identity)
    - ModeratorId, PunishmentId, ActionId wrap UUIDs — never use bare UUID in domain logic
    - PunishmentLevel is bounded 1–6; higher is more severe
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (ADR: audit metadata is JSON)
    - IntEnum for PunishmentLevel: ordering and arithmetic are part of the ladder semantics
"""

from enum import Enum, IntEnum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserHash = NewType("UserHash", str)
DeviceHash = NewType("DeviceHash", str)
ModeratorId = NewType("ModeratorId", UUID)
PunishmentId = NewType("PunishmentId", UUID)
ActionId = NewType("ActionId", UUID)
ContentId = NewType("ContentId", str)
ScopeId = NewType("ScopeId", str)


# ─── Constants ───────────────────────────────────────────────────

MIN_PUNISHMENT_LEVEL = 1
MAX_PUNISHMENT_LEVEL = 6

ACTIVITY_HOURS_WINDOW = 24
PREFERRED_POST_TYPES_WINDOW = 5
INTERACTION_PATTERNS_WINDOW = 50


# ─── Enums ───────────────────────────────────────────────────────

class ModeratorRole(str, Enum):
    """The seven moderator offices, most authoritative first."""
    PRIME_SOVEREIGN = "prime_sovereign"
    THE_HAND = "the_hand"
    CROWNED_KING = "crowned_king"
    STEWARD = "steward"
    MARSHAL = "marshal"
    SENTINEL = "sentinel"
    VEIL_WATCHER = "veil_watcher"


class ScopeType(str, Enum):
    """Where a moderator or punishment applies."""
    GLOBAL = "global"
    DOMINION = "dominion"
    TERRITORY = "territory"


class PunishmentLevel(IntEnum):
    """The six rungs of the punishment ladder."""
    SHADOW_BAN = 1
    COOLDOWN = 2
    CONTENT_LOCK = 3
    TERRITORY_MUTE = 4
    REGIONAL_MUTE = 5
    PERMANENT_BAN = 6


class ModActionType(str, Enum):
    """The twelve audited moderation action kinds."""
    SHADOW_BAN = "shadow_ban"
    COOLDOWN = "cooldown"
    CONTENT_LOCK = "content_lock"
    TERRITORY_MUTE = "territory_mute"
    REGIONAL_MUTE = "regional_mute"
    PERMANENT_BAN = "permanent_ban"
    UNBAN = "unban"
    CONTENT_REMOVE = "content_remove"
    CONTENT_RESTORE = "content_restore"
    USER_WARN = "user_warn"
    APPOINT_MOD = "appoint_mod"
    REMOVE_MOD = "remove_mod"


class UserAction(str, Enum):
    """What a (possibly sanctioned) user is trying to do."""
    POST = "post"
    COMMENT = "comment"
    CHAT = "chat"
    LIKE = "like"
    VIEW = "view"


class AuditOutcome(str, Enum):
    """Whether an audited decision was carried out or refused."""
    APPLIED = "applied"
    DENIED = "denied"

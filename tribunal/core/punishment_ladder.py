"""Punishment Ladder — six-level sanction state machine with scope-sensitive enforcement.

Invariants:
    - All functions are PURE: no IO, no async, no DB; "now" is injectable
    - At most one effective punishment per (user, requested scope): max level wins,
      regardless of how narrow its scope is
    - A record is active iff expires_at is None or expires_at > now
    - Level 6 is always permanent; every other level expires after its configured duration
    - Shadow-ban (level 1) hides content from everyone but the author and restricts nothing

Design Decisions:
    - Durations are configuration (Settings.punishment_duration_hours) passed in,
      with DEFAULT_DURATION_HOURS as the fallback table (ADR: explicit duration config)
    - Escalation reads history, never the live effective punishment: an expired
      level-3 still leads to level 4 next time
    - Unban tombstones the record (expires_at = now); rows are never deleted
"""

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from types import MappingProxyType

from tribunal.core.domain_types import (
    MAX_PUNISHMENT_LEVEL, MIN_PUNISHMENT_LEVEL,
    ModActionType, ModeratorId, PunishmentId, PunishmentLevel,
    ScopeId, ScopeType, UserAction, UserHash,
)
from tribunal.core.errors import EmptyReasonError, InvalidPunishmentLevelError
from tribunal.core.records import ActionDecision, UserPunishment
from tribunal.core.role_authority import check_scope_shape

L = PunishmentLevel


@dataclass(frozen=True)
class LadderRung:
    """Display and behavior facts for one level."""
    name: str
    description: str
    icon: str
    color: str


LADDER = MappingProxyType({
    L.SHADOW_BAN: LadderRung(
        "Shadow-Ban", "User screams into void. Posts visible only to them.",
        "ghost", "#6b7280",
    ),
    L.COOLDOWN: LadderRung("Cooldown", "Posting delay enforced.", "hourglass", "#eab308"),
    L.CONTENT_LOCK: LadderRung("Content Lock", "Cannot create new posts.", "lock", "#f97316"),
    L.TERRITORY_MUTE: LadderRung("Territory Mute", "Silenced in their college.", "mute", "#ef4444"),
    L.REGIONAL_MUTE: LadderRung("Regional Mute", "Silenced across the dominion.", "globe", "#dc2626"),
    L.PERMANENT_BAN: LadderRung("Permanent Ban", "Gone. Escalated decision.", "skull", "#7f1d1d"),
})

DEFAULT_DURATION_HOURS: Mapping[int, int | None] = MappingProxyType({
    1: 24,
    2: 48,
    3: 72,
    4: 168,   # 1 week
    5: 720,   # 30 days
    6: None,  # permanent
})

LEVEL_ACTIONS = MappingProxyType({
    L.SHADOW_BAN: ModActionType.SHADOW_BAN,
    L.COOLDOWN: ModActionType.COOLDOWN,
    L.CONTENT_LOCK: ModActionType.CONTENT_LOCK,
    L.TERRITORY_MUTE: ModActionType.TERRITORY_MUTE,
    L.REGIONAL_MUTE: ModActionType.REGIONAL_MUTE,
    L.PERMANENT_BAN: ModActionType.PERMANENT_BAN,
})

_ACTION_LEVELS = MappingProxyType({a: lvl for lvl, a in LEVEL_ACTIONS.items()})


def action_for_level(level: int) -> ModActionType:
    return LEVEL_ACTIONS[_coerce_level(level)]


def level_for_action(action_type: ModActionType) -> PunishmentLevel | None:
    """Ladder level imposed by an action kind, or None for non-sanction kinds."""
    return _ACTION_LEVELS.get(action_type)


# ─── Lookup ──────────────────────────────────────────────────────

def _scope_applies(
    punishment: UserPunishment,
    territory_id: ScopeId | None,
    dominion_id: ScopeId | None,
) -> bool:
    if punishment.scope_type == ScopeType.GLOBAL:
        return True
    if punishment.scope_type == ScopeType.DOMINION:
        return dominion_id is not None and punishment.scope_id == dominion_id
    if punishment.scope_type == ScopeType.TERRITORY:
        return territory_id is not None and punishment.scope_id == territory_id
    return False


def is_user_punished(
    punishments: Iterable[UserPunishment],
    user_hash: UserHash,
    territory_id: ScopeId | None = None,
    dominion_id: ScopeId | None = None,
    now: datetime | None = None,
) -> UserPunishment | None:
    """Effective punishment for user in the requested scope, or None."""
    now = now or datetime.now(timezone.utc)
    applicable = [
        p for p in punishments
        if p.user_hash == user_hash
        and p.is_active(now)
        and _scope_applies(p, territory_id, dominion_id)
    ]
    if not applicable:
        return None
    # max() keeps the first of equal levels: ties resolve to input order
    return max(applicable, key=lambda p: p.punishment_level)


# ─── Gates ───────────────────────────────────────────────────────

def can_user_act(
    punishment: UserPunishment | None, action: UserAction | str,
) -> ActionDecision:
    """What a punished user may still do. Level 1 restricts nothing."""
    if punishment is None:
        return ActionDecision(allowed=True)

    action = UserAction(action)
    level = punishment.punishment_level

    if level == L.SHADOW_BAN:
        return ActionDecision(allowed=True)

    if level == L.COOLDOWN:
        if action == UserAction.POST:
            return ActionDecision(allowed=False, reason="Posting cooldown active")
        return ActionDecision(allowed=True)

    if level == L.CONTENT_LOCK:
        if action in (UserAction.POST, UserAction.COMMENT):
            return ActionDecision(allowed=False, reason="Content creation locked")
        return ActionDecision(allowed=True)

    if level in (L.TERRITORY_MUTE, L.REGIONAL_MUTE):
        if action == UserAction.LIKE:
            return ActionDecision(allowed=True)
        return ActionDecision(allowed=False, reason=f"{LADDER[level].name} active")

    if level == L.PERMANENT_BAN:
        return ActionDecision(allowed=False, reason="Account banned")

    return ActionDecision(allowed=True)


def is_content_visible(
    viewer_hash: UserHash,
    author_hash: UserHash,
    author_punishment: UserPunishment | None,
) -> bool:
    """Visibility Law: only a shadow-banned author's content is hidden, and never from the author."""
    if viewer_hash == author_hash:
        return True
    if author_punishment is not None and author_punishment.punishment_level == L.SHADOW_BAN:
        return False
    return True


# ─── Escalation ──────────────────────────────────────────────────

def latest_punishment(
    history: Iterable[UserPunishment], user_hash: UserHash,
) -> UserPunishment | None:
    """Most recently created record for the user (expired or not)."""
    own = [p for p in history if p.user_hash == user_hash]
    if not own:
        return None
    return max(own, key=lambda p: p.created_at)


def get_next_punishment_level(
    history: Iterable[UserPunishment], user_hash: UserHash,
) -> PunishmentLevel:
    """Most recent level + 1, capped at 6. No history -> 1."""
    last = latest_punishment(history, user_hash)
    if last is None:
        return L.SHADOW_BAN
    return L(min(last.punishment_level + 1, MAX_PUNISHMENT_LEVEL))


def create_punishment(
    user_hash: UserHash,
    level: int,
    scope_type: ScopeType,
    scope_id: ScopeId | None,
    moderator_id: ModeratorId,
    reason: str,
    durations: Mapping[int, int | None] | None = None,
    now: datetime | None = None,
) -> UserPunishment:
    """Build (not persist) a punishment record. Raises ValidationError subclasses on bad input."""
    level = _coerce_level(level)
    if not reason or not reason.strip():
        raise EmptyReasonError()
    check_scope_shape(scope_type, scope_id)

    now = now or datetime.now(timezone.utc)
    hours = (durations or DEFAULT_DURATION_HOURS).get(int(level))
    if level == L.PERMANENT_BAN:
        hours = None
    expires_at = now + timedelta(hours=hours) if hours else None

    return UserPunishment(
        id=PunishmentId(uuid.uuid4()),
        user_hash=user_hash,
        punishment_level=level,
        scope_type=scope_type,
        scope_id=scope_id,
        expires_at=expires_at,
        applied_by=moderator_id,
        reason=reason.strip(),
        created_at=now,
    )


def expire_punishment(
    punishment: UserPunishment, now: datetime | None = None,
) -> UserPunishment:
    """Unban tombstone: same record, expiring now. Already-expired records are returned unchanged."""
    now = now or datetime.now(timezone.utc)
    if not punishment.is_active(now):
        return punishment
    return replace(punishment, expires_at=now)


def get_punishment_display(level: int) -> dict:
    """Moderator-facing description of a level. Never shown to the punished user."""
    level = _coerce_level(level)
    rung = LADDER[level]
    return {
        "level": int(level),
        "name": rung.name,
        "description": rung.description,
        "icon": rung.icon,
        "color": rung.color,
    }


def _coerce_level(level: int) -> PunishmentLevel:
    if isinstance(level, bool) or not isinstance(level, int):
        raise InvalidPunishmentLevelError(level)
    if not MIN_PUNISHMENT_LEVEL <= level <= MAX_PUNISHMENT_LEVEL:
        raise InvalidPunishmentLevelError(level)
    return L(level)

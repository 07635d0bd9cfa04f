"""Domain Records — immutable value objects passed between core and shell.

Invariants:
    - Records are frozen: "changing" one means building a new one (dataclasses.replace)
    - All datetimes are timezone-aware UTC
    - Moderator.scope_id is None iff scope_type is GLOBAL
    - ModAction.reason is never empty (enforced by audit_log.create_audit_entry)

Design Decisions:
    - Frozen dataclasses over ORM rows: core never sees SQLAlchemy objects
      (ADR: repositories translate rows <-> records at the boundary)
    - Decision values (ActionDecision, ConstraintCheck, AuthorizationDecision) instead of
      exceptions: the calling layer shows the reason before any mutation is attempted
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from tribunal.core.domain_types import (
    ActionId, AuditOutcome, ContentId, ModActionType, ModeratorId,
    ModeratorRole, PunishmentId, PunishmentLevel, ScopeId, ScopeType, UserHash,
)


@dataclass(frozen=True)
class Moderator:
    """An appointed office holder. Trusted as already authenticated."""
    id: ModeratorId
    user_hash: UserHash
    role: ModeratorRole
    scope_type: ScopeType
    scope_id: ScopeId | None = None
    appointed_by: ModeratorId | None = None
    appointed_at: datetime | None = None


@dataclass(frozen=True)
class UserPunishment:
    """One rung of the ladder applied to one user in one scope."""
    id: PunishmentId
    user_hash: UserHash
    punishment_level: PunishmentLevel
    scope_type: ScopeType
    scope_id: ScopeId | None
    expires_at: datetime | None  # None = permanent
    applied_by: ModeratorId
    reason: str
    created_at: datetime

    def is_active(self, now: datetime) -> bool:
        return self.expires_at is None or self.expires_at > now


# Well-known metadata keys, in export order
AUDIT_METADATA_KEYS = (
    "timestamp",
    "action_description",
    "outcome",
    "denial_reason",
    "punishment_level",
    "previous_level",
    "scope_type",
    "scope_id",
    "expires_at",
    "target_moderator_id",
    "appointed_role",
)


@dataclass(frozen=True)
class AuditMetadata:
    """Typed audit metadata: documented keys plus an opaque passthrough bucket."""
    timestamp: str | None = None
    action_description: str | None = None
    outcome: AuditOutcome = AuditOutcome.APPLIED
    denial_reason: str | None = None
    punishment_level: int | None = None
    previous_level: int | None = None
    scope_type: str | None = None
    scope_id: str | None = None
    expires_at: str | None = None
    target_moderator_id: str | None = None
    appointed_role: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Flatten to a JSON-ready dict. Well-known keys win over extra."""
        data: dict[str, Any] = dict(self.extra)
        for key in AUDIT_METADATA_KEYS:
            value = getattr(self, key)
            if value is None:
                continue
            data[key] = value.value if isinstance(value, AuditOutcome) else value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "AuditMetadata":
        """Inverse of to_dict: unknown keys land in extra."""
        data = dict(data or {})
        known = {k: data.pop(k) for k in AUDIT_METADATA_KEYS if k in data}
        if "outcome" in known:
            known["outcome"] = AuditOutcome(known["outcome"])
        return cls(**known, extra=data)


@dataclass(frozen=True)
class ModAction:
    """Append-only audit entry."""
    id: ActionId
    moderator_id: ModeratorId
    action_type: ModActionType
    target_user_hash: UserHash | None
    target_content_id: ContentId | None
    reason: str
    metadata: AuditMetadata
    created_at: datetime


# ─── Decision Values ─────────────────────────────────────────────

@dataclass(frozen=True)
class ActionDecision:
    """Whether a sanctioned user may perform an action."""
    allowed: bool
    reason: str | None = None


@dataclass(frozen=True)
class ConstraintCheck:
    """Whether a role may perform an action kind at all."""
    valid: bool
    reason: str | None = None


@dataclass(frozen=True)
class AuthorizationDecision:
    """Combined role/scope/constraint verdict for one moderation request."""
    allowed: bool
    reason: str | None = None

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"allowed": self.allowed}
        if self.reason is not None:
            payload["reason"] = self.reason
        return payload


ALLOWED = AuthorizationDecision(allowed=True)

"""Moderation Schemas — Pydantic models for moderator, punishment and content-action requests.

Invariants:
    - reason: 1-2000 chars, stripped, non-empty
    - scope_id present iff scope_type is not "global" (validated before the service runs)
    - punishment level, when given, is 1-6

Design Decisions:
    - Enums from core/domain_types reused directly: Pydantic validates the values natively
    - Responses built from core records via from_record classmethods, never from ORM rows
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from tribunal.core.domain_types import (
    MAX_PUNISHMENT_LEVEL, MIN_PUNISHMENT_LEVEL,
    ModActionType, ModeratorRole, ScopeType, UserAction,
)
from tribunal.core.punishment_ladder import LADDER
from tribunal.core.records import (
    ActionDecision, AuthorizationDecision, ModAction, Moderator, UserPunishment,
)
from tribunal.core.role_authority import get_role_display


class _Reasoned(BaseModel):
    reason: str = Field(min_length=1, max_length=2000)

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("reason cannot be empty or whitespace")
        return v


class _Scoped(BaseModel):
    scope_type: ScopeType
    scope_id: str | None = Field(None, min_length=1, max_length=64)

    @model_validator(mode="after")
    def validate_scope_shape(self):
        if self.scope_type == ScopeType.GLOBAL and self.scope_id is not None:
            raise ValueError("global scope takes no scope_id")
        if self.scope_type != ScopeType.GLOBAL and self.scope_id is None:
            raise ValueError(f"{self.scope_type.value} scope requires scope_id")
        return self


# --- Moderators ---------------------------------------------------------------

class AppointRequest(_Reasoned, _Scoped):
    user_hash: str = Field(min_length=1, max_length=80)
    role: ModeratorRole


class RemoveModeratorRequest(_Reasoned):
    pass


class ModeratorResponse(BaseModel):
    id: UUID
    user_hash: str
    role: ModeratorRole
    title: str
    scope_type: ScopeType
    scope_id: str | None
    appointed_by: UUID | None
    appointed_at: datetime | None

    @classmethod
    def from_record(cls, moderator: Moderator) -> "ModeratorResponse":
        return cls(
            id=moderator.id,
            user_hash=moderator.user_hash,
            role=moderator.role,
            title=get_role_display(moderator.role)["title"],
            scope_type=moderator.scope_type,
            scope_id=moderator.scope_id,
            appointed_by=moderator.appointed_by,
            appointed_at=moderator.appointed_at,
        )


# --- Punishments --------------------------------------------------------------

class ImposePunishmentRequest(_Reasoned, _Scoped):
    user_hash: str = Field(min_length=1, max_length=80)
    level: int | None = Field(None, ge=MIN_PUNISHMENT_LEVEL, le=MAX_PUNISHMENT_LEVEL)
    action_type: ModActionType | None = None


class LiftPunishmentRequest(_Reasoned, _Scoped):
    user_hash: str = Field(min_length=1, max_length=80)


class PunishmentResponse(BaseModel):
    id: UUID
    user_hash: str
    punishment_level: int
    name: str
    scope_type: ScopeType
    scope_id: str | None
    expires_at: datetime | None
    applied_by: UUID
    reason: str
    created_at: datetime

    @classmethod
    def from_record(cls, record: UserPunishment) -> "PunishmentResponse":
        return cls(
            id=record.id,
            user_hash=record.user_hash,
            punishment_level=int(record.punishment_level),
            name=LADDER[record.punishment_level].name,
            scope_type=record.scope_type,
            scope_id=record.scope_id,
            expires_at=record.expires_at,
            applied_by=record.applied_by,
            reason=record.reason,
            created_at=record.created_at,
        )


# --- Content actions ----------------------------------------------------------

class ContentActionRequest(_Reasoned, _Scoped):
    action_type: ModActionType
    target_user_hash: str | None = Field(None, max_length=80)
    target_content_id: str | None = Field(None, max_length=64)

    @model_validator(mode="after")
    def require_target(self):
        if not self.target_user_hash and not self.target_content_id:
            raise ValueError("target_user_hash or target_content_id is required")
        return self


# --- Checks -------------------------------------------------------------------

class ActionCheckRequest(BaseModel):
    user_hash: str = Field(min_length=1, max_length=80)
    action: UserAction
    territory_id: str | None = None
    dominion_id: str | None = None


class VisibilityCheckRequest(BaseModel):
    viewer_hash: str = Field(min_length=1, max_length=80)
    author_hash: str = Field(min_length=1, max_length=80)
    territory_id: str | None = None
    dominion_id: str | None = None


class ActionDecisionResponse(BaseModel):
    allowed: bool
    reason: str | None = None

    @classmethod
    def from_decision(
        cls, decision: ActionDecision | AuthorizationDecision,
    ) -> "ActionDecisionResponse":
        return cls(allowed=decision.allowed, reason=decision.reason)


# --- Outcomes -----------------------------------------------------------------

class AuditEntryResponse(BaseModel):
    id: UUID
    moderator_id: UUID
    action_type: ModActionType
    target_user_hash: str | None
    target_content_id: str | None
    reason: str
    metadata: dict
    created_at: datetime

    @classmethod
    def from_record(cls, entry: ModAction) -> "AuditEntryResponse":
        return cls(
            id=entry.id,
            moderator_id=entry.moderator_id,
            action_type=entry.action_type,
            target_user_hash=entry.target_user_hash,
            target_content_id=entry.target_content_id,
            reason=entry.reason,
            metadata=entry.metadata.to_dict(),
            created_at=entry.created_at,
        )


class ModerationOutcomeResponse(BaseModel):
    allowed: bool
    reason: str | None = None
    audit_entry: AuditEntryResponse
    punishment: PunishmentResponse | None = None
    moderator: ModeratorResponse | None = None
    lifted: list[PunishmentResponse] = []

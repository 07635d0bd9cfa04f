"""Moderation Service — imposes, lifts and checks sanctions.

Invariants:
    - Escalation reads history, computes the next level and inserts under the per-user lock
    - insert_if_latest guards the same sequence at the store across workers
      (ConcurrencyError on a race, nothing written)
    - Denials are audited with outcome=denied and returned as AuthorizationDecision values
    - Read-side checks (check_user_action, check_content_visibility) never write

Design Decisions:
    - Territory -> dominion resolution happens here, before calling the pure core
    - Unban tombstones the active records in exactly the requested scope; a broader or
      narrower sanction needs its own lift
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from tribunal.core.audit_log import create_audit_entry
from tribunal.core.domain_types import (
    AuditOutcome, ContentId, ModActionType, ScopeId, ScopeType, UserAction, UserHash,
)
from tribunal.core.errors import (
    EmptyReasonError, ErrorContext, ResourceNotFoundError, ValidationError,
)
from tribunal.core.punishment_ladder import (
    action_for_level, can_user_act, create_punishment, expire_punishment,
    get_next_punishment_level, is_content_visible, is_user_punished,
    latest_punishment, level_for_action,
)
from tribunal.core.records import (
    ALLOWED, ActionDecision, AuditMetadata, AuthorizationDecision,
    ModAction, Moderator, UserPunishment,
)
from tribunal.core.repository_protocols import (
    AuditRepository, PunishmentRepository, TerritoryDirectory,
)
from tribunal.core.role_authority import authorize_sanction, check_scope_shape
from tribunal.infrastructure.key_locks import KeyedLocks, moderation_locks, user_key
from tribunal.infrastructure.repositories import (
    SqlAuditRepository, SqlPunishmentRepository, SqlTerritoryDirectory,
)

logger = logging.getLogger(__name__)

CONTENT_ACTIONS = frozenset({
    ModActionType.CONTENT_REMOVE,
    ModActionType.CONTENT_RESTORE,
    ModActionType.USER_WARN,
})


@dataclass(frozen=True)
class ModerationOutcome:
    """Result of one moderation request."""
    decision: AuthorizationDecision
    audit_entry: ModAction
    punishment: UserPunishment | None = None
    lifted: tuple[UserPunishment, ...] = ()


class ModerationService:
    """Sanction writes and sanction-aware read checks."""

    def __init__(
        self,
        db: AsyncSession,
        durations: Mapping[int, int | None] | None = None,
        locks: KeyedLocks = moderation_locks,
    ):
        self.db = db
        self.durations = durations
        self.locks = locks
        self.punishments: PunishmentRepository = SqlPunishmentRepository(db)
        self.audit: AuditRepository = SqlAuditRepository(db)
        self.territories: TerritoryDirectory = SqlTerritoryDirectory(db)

    # ─── Writes ──────────────────────────────────────────────────

    async def impose_punishment(
        self,
        actor: Moderator,
        user_hash: UserHash,
        scope_type: ScopeType,
        scope_id: ScopeId | None,
        reason: str,
        level: int | None = None,
        action_type: ModActionType | None = None,
    ) -> ModerationOutcome:
        """Escalate (or apply an explicit level to) a user in one scope.

        An explicit rung may be named either by level or by its sanction kind
        (e.g. ``regional_mute``); with neither, the next rung of the ladder applies.
        """
        _require_reason(reason)
        check_scope_shape(scope_type, scope_id)
        if action_type is not None:
            level = _level_named_by(ModActionType(action_type), level)
        territory_dominion = await self._territory_dominion(scope_type, scope_id)

        async with self.locks.hold(user_key(user_hash)):
            history = await self.punishments.list_history(user_hash)
            previous = latest_punishment(history, user_hash)
            next_level = (
                level if level is not None
                else get_next_punishment_level(history, user_hash)
            )
            action_type = action_for_level(next_level)
            scope_meta = _scope_metadata(scope_type, scope_id)

            decision = authorize_sanction(
                actor, action_type, scope_type, scope_id, territory_dominion,
            )
            if not decision.allowed:
                entry = await self._record_denial(
                    actor, action_type, decision, reason,
                    target_user_hash=user_hash,
                    metadata=AuditMetadata(
                        punishment_level=int(next_level), **scope_meta,
                    ),
                )
                return ModerationOutcome(decision=decision, audit_entry=entry)

            now = datetime.now(timezone.utc)
            record = create_punishment(
                user_hash, next_level, scope_type, scope_id,
                actor.id, reason, self.durations, now,
            )
            await self.punishments.insert_if_latest(
                record, previous.id if previous else None,
            )
            entry = create_audit_entry(
                actor.id, action_type,
                reason=reason,
                target_user_hash=user_hash,
                metadata=AuditMetadata(
                    punishment_level=int(record.punishment_level),
                    previous_level=int(previous.punishment_level) if previous else None,
                    expires_at=record.expires_at.isoformat() if record.expires_at else None,
                    **scope_meta,
                ),
                now=now,
            )
            await self.audit.append(entry)
            await self.db.commit()

        logger.info(
            f"Punishment level {int(record.punishment_level)} applied",
            extra={
                "moderator_id": actor.id, "user_hash": user_hash,
                "action_type": action_type.value,
                "punishment_level": int(record.punishment_level),
                "outcome": AuditOutcome.APPLIED.value,
            },
        )
        return ModerationOutcome(decision=ALLOWED, audit_entry=entry, punishment=record)

    async def lift_punishment(
        self,
        actor: Moderator,
        user_hash: UserHash,
        scope_type: ScopeType,
        scope_id: ScopeId | None,
        reason: str,
    ) -> ModerationOutcome:
        """Unban: tombstone the user's active punishments in exactly this scope."""
        _require_reason(reason)
        check_scope_shape(scope_type, scope_id)
        territory_dominion = await self._territory_dominion(scope_type, scope_id)
        scope_meta = _scope_metadata(scope_type, scope_id)

        decision = authorize_sanction(
            actor, ModActionType.UNBAN, scope_type, scope_id, territory_dominion,
        )
        if not decision.allowed:
            entry = await self._record_denial(
                actor, ModActionType.UNBAN, decision, reason,
                target_user_hash=user_hash, metadata=AuditMetadata(**scope_meta),
            )
            return ModerationOutcome(decision=decision, audit_entry=entry)

        async with self.locks.hold(user_key(user_hash)):
            now = datetime.now(timezone.utc)
            active = await self.punishments.list_active(user_hash, now)
            in_scope = [
                p for p in active
                if p.scope_type == scope_type and p.scope_id == scope_id
            ]
            if not in_scope:
                raise ResourceNotFoundError(
                    "Active punishment",
                    f"{user_hash}@{scope_type.value}:{scope_id or '*'}",
                    ErrorContext(user_hash=user_hash),
                )
            lifted = tuple(expire_punishment(p, now) for p in in_scope)
            await self.punishments.save_expiry(list(lifted))
            entry = create_audit_entry(
                actor.id, ModActionType.UNBAN,
                reason=reason,
                target_user_hash=user_hash,
                metadata=AuditMetadata(
                    previous_level=max(int(p.punishment_level) for p in in_scope),
                    extra={"lifted_punishment_ids": [str(p.id) for p in in_scope]},
                    **scope_meta,
                ),
                now=now,
            )
            await self.audit.append(entry)
            await self.db.commit()

        logger.info(
            f"Lifted {len(in_scope)} punishment(s)",
            extra={
                "moderator_id": actor.id, "user_hash": user_hash,
                "action_type": ModActionType.UNBAN.value,
                "outcome": AuditOutcome.APPLIED.value,
            },
        )
        return ModerationOutcome(
            decision=ALLOWED, audit_entry=entry, lifted=lifted,
        )

    async def record_content_action(
        self,
        actor: Moderator,
        action_type: ModActionType,
        reason: str,
        scope_type: ScopeType,
        scope_id: ScopeId | None,
        target_user_hash: UserHash | None = None,
        target_content_id: ContentId | None = None,
    ) -> ModerationOutcome:
        """content_remove / content_restore / user_warn: authorize and audit.

        Content storage belongs to the feed service; it acts on the returned decision.
        """
        action_type = ModActionType(action_type)
        if action_type not in CONTENT_ACTIONS:
            raise ValidationError(
                f"'{action_type.value}' is not a content action", "action_type",
            )
        if not target_user_hash and not target_content_id:
            raise ValidationError(
                "A target user or content id is required", "target",
            )
        _require_reason(reason)
        check_scope_shape(scope_type, scope_id)
        territory_dominion = await self._territory_dominion(scope_type, scope_id)
        scope_meta = _scope_metadata(scope_type, scope_id)

        decision = authorize_sanction(
            actor, action_type, scope_type, scope_id, territory_dominion,
        )
        if not decision.allowed:
            entry = await self._record_denial(
                actor, action_type, decision, reason,
                target_user_hash=target_user_hash,
                target_content_id=target_content_id,
                metadata=AuditMetadata(**scope_meta),
            )
            return ModerationOutcome(decision=decision, audit_entry=entry)

        entry = create_audit_entry(
            actor.id, action_type,
            reason=reason,
            target_user_hash=target_user_hash,
            target_content_id=target_content_id,
            metadata=AuditMetadata(**scope_meta),
        )
        await self.audit.append(entry)
        await self.db.commit()
        logger.info(
            f"Content action {action_type.value} recorded",
            extra={
                "moderator_id": actor.id, "user_hash": target_user_hash,
                "action_type": action_type.value,
                "outcome": AuditOutcome.APPLIED.value,
            },
        )
        return ModerationOutcome(decision=ALLOWED, audit_entry=entry)

    # ─── Reads ───────────────────────────────────────────────────

    async def get_effective_punishment(
        self,
        user_hash: UserHash,
        territory_id: ScopeId | None = None,
        dominion_id: ScopeId | None = None,
    ) -> UserPunishment | None:
        now = datetime.now(timezone.utc)
        if territory_id and not dominion_id:
            dominion_id = await self.territories.get_dominion_id(territory_id)
        active = await self.punishments.list_active(user_hash, now)
        return is_user_punished(active, user_hash, territory_id, dominion_id, now)

    async def check_user_action(
        self,
        user_hash: UserHash,
        action: UserAction,
        territory_id: ScopeId | None = None,
        dominion_id: ScopeId | None = None,
    ) -> ActionDecision:
        effective = await self.get_effective_punishment(
            user_hash, territory_id, dominion_id,
        )
        return can_user_act(effective, action)

    async def check_content_visibility(
        self,
        viewer_hash: UserHash,
        author_hash: UserHash,
        territory_id: ScopeId | None = None,
        dominion_id: ScopeId | None = None,
    ) -> bool:
        if viewer_hash == author_hash:
            return True
        effective = await self.get_effective_punishment(
            author_hash, territory_id, dominion_id,
        )
        return is_content_visible(viewer_hash, author_hash, effective)

    # ─── Helpers ─────────────────────────────────────────────────

    async def _territory_dominion(
        self, scope_type: ScopeType, scope_id: ScopeId | None,
    ) -> ScopeId | None:
        if scope_type != ScopeType.TERRITORY or not scope_id:
            return None
        return await self.territories.get_dominion_id(scope_id)

    async def _record_denial(
        self,
        actor: Moderator,
        action_type: ModActionType,
        decision: AuthorizationDecision,
        reason: str,
        metadata: AuditMetadata,
        target_user_hash: UserHash | None = None,
        target_content_id: ContentId | None = None,
    ) -> ModAction:
        return await record_denial(
            self.db, self.audit, actor, action_type, decision, reason,
            metadata, target_user_hash, target_content_id,
        )


async def record_denial(
    db: AsyncSession,
    audit: AuditRepository,
    actor: Moderator,
    action_type: ModActionType,
    decision: AuthorizationDecision,
    reason: str,
    metadata: AuditMetadata,
    target_user_hash: UserHash | None = None,
    target_content_id: ContentId | None = None,
) -> ModAction:
    """Audit a refused request. Nothing but the audit row is written."""
    entry = create_audit_entry(
        actor.id, action_type,
        reason=reason,
        target_user_hash=target_user_hash,
        target_content_id=target_content_id,
        metadata=_with_denial(metadata, decision),
    )
    await audit.append(entry)
    await db.commit()
    logger.warning(
        f"Moderation request denied: {decision.reason}",
        extra={
            "moderator_id": actor.id, "user_hash": target_user_hash,
            "action_type": action_type.value,
            "outcome": AuditOutcome.DENIED.value,
        },
    )
    return entry


def _with_denial(
    metadata: AuditMetadata, decision: AuthorizationDecision,
) -> AuditMetadata:
    return replace(
        metadata, outcome=AuditOutcome.DENIED, denial_reason=decision.reason,
    )


def _level_named_by(action_type: ModActionType, level: int | None) -> int:
    named = level_for_action(action_type)
    if named is None:
        raise ValidationError(
            f"'{action_type.value}' is not a ladder sanction", "action_type",
        )
    if level is not None and int(level) != int(named):
        raise ValidationError(
            f"'{action_type.value}' is level {int(named)}, not {level}", "action_type",
        )
    return int(named)


def _require_reason(reason: str) -> None:
    if not reason or not reason.strip():
        raise EmptyReasonError()


def _scope_metadata(scope_type: ScopeType, scope_id: ScopeId | None) -> dict:
    return {"scope_type": scope_type.value, "scope_id": scope_id}

"""Appointment Service — grants and revokes moderator offices.

Invariants:
    - A role outside the appointer's appointment tree is rejected before any write
    - The appointee's scope must lie inside the appointer's scope
    - Removal requires strictly higher rank AND scope over the target's own scope
    - One office per user_hash; a second appointment is a conflict
    - Every appointment and removal, applied or denied, is audited

Design Decisions:
    - Appointments serialize on the appointee's user_hash, removals on the moderator id
    - The prime sovereign is bootstrapped once, into an empty moderator table
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from tribunal.core.audit_log import create_audit_entry
from tribunal.core.domain_types import (
    AuditOutcome, ModActionType, ModeratorId, ModeratorRole, ScopeId, ScopeType, UserHash,
)
from tribunal.core.errors import (
    ConcurrencyError, EmptyReasonError, ErrorContext, ResourceNotFoundError,
)
from tribunal.core.records import (
    ALLOWED, AuditMetadata, AuthorizationDecision, ModAction, Moderator,
)
from tribunal.core.repository_protocols import (
    AuditRepository, ModeratorRepository, TerritoryDirectory,
)
from tribunal.core.role_authority import (
    authorize_appointment_scope, authorize_moderator_removal,
    check_appointment, check_scope_shape,
)
from tribunal.infrastructure.key_locks import (
    KeyedLocks, appointee_key, moderation_locks, moderator_key,
)
from tribunal.infrastructure.repositories import (
    SqlAuditRepository, SqlModeratorRepository, SqlTerritoryDirectory,
)
from tribunal.services.moderation_service import record_denial

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppointmentOutcome:
    """Result of an appointment or removal request."""
    decision: AuthorizationDecision
    audit_entry: ModAction
    moderator: Moderator | None = None


class AppointmentService:
    def __init__(self, db: AsyncSession, locks: KeyedLocks = moderation_locks):
        self.db = db
        self.locks = locks
        self.moderators: ModeratorRepository = SqlModeratorRepository(db)
        self.audit: AuditRepository = SqlAuditRepository(db)
        self.territories: TerritoryDirectory = SqlTerritoryDirectory(db)

    async def list_moderators(self) -> list[Moderator]:
        return await self.moderators.list_all()

    async def get_moderator(self, moderator_id: ModeratorId) -> Moderator:
        moderator = await self.moderators.get(moderator_id)
        if moderator is None:
            raise ResourceNotFoundError("Moderator", str(moderator_id))
        return moderator

    async def appoint(
        self,
        actor: Moderator,
        user_hash: UserHash,
        role: ModeratorRole,
        scope_type: ScopeType,
        scope_id: ScopeId | None,
        reason: str,
    ) -> AppointmentOutcome:
        if not reason or not reason.strip():
            raise EmptyReasonError()
        check_appointment(actor.role, role)
        check_scope_shape(scope_type, scope_id)

        territory_dominion = None
        if scope_type == ScopeType.TERRITORY:
            territory_dominion = await self.territories.get_dominion_id(scope_id)
        metadata = AuditMetadata(
            appointed_role=role.value,
            scope_type=scope_type.value,
            scope_id=scope_id,
        )

        decision = authorize_appointment_scope(
            actor, scope_type, scope_id, territory_dominion,
        )
        if not decision.allowed:
            entry = await record_denial(
                self.db, self.audit, actor, ModActionType.APPOINT_MOD,
                decision, reason, metadata, target_user_hash=user_hash,
            )
            return AppointmentOutcome(decision, entry)

        async with self.locks.hold(appointee_key(user_hash)):
            if await self.moderators.get_by_user_hash(user_hash) is not None:
                raise ConcurrencyError(
                    "User already holds a moderator office.",
                    ErrorContext(moderator_id=str(actor.id), user_hash=user_hash),
                )
            now = datetime.now(timezone.utc)
            moderator = Moderator(
                id=ModeratorId(uuid.uuid4()),
                user_hash=user_hash,
                role=role,
                scope_type=scope_type,
                scope_id=scope_id,
                appointed_by=actor.id,
                appointed_at=now,
            )
            await self.moderators.insert(moderator)
            entry = create_audit_entry(
                actor.id, ModActionType.APPOINT_MOD,
                reason=reason,
                target_user_hash=user_hash,
                metadata=AuditMetadata(
                    target_moderator_id=str(moderator.id),
                    appointed_role=role.value,
                    scope_type=scope_type.value,
                    scope_id=scope_id,
                ),
                now=now,
            )
            await self.audit.append(entry)
            await self.db.commit()

        logger.info(
            f"Appointed {role.value}",
            extra={
                "moderator_id": actor.id, "user_hash": user_hash,
                "action_type": ModActionType.APPOINT_MOD.value,
                "outcome": AuditOutcome.APPLIED.value,
            },
        )
        return AppointmentOutcome(ALLOWED, entry, moderator)

    async def remove(
        self, actor: Moderator, moderator_id: ModeratorId, reason: str,
    ) -> AppointmentOutcome:
        if not reason or not reason.strip():
            raise EmptyReasonError()

        async with self.locks.hold(moderator_key(moderator_id)):
            target = await self.get_moderator(moderator_id)
            territory_dominion = None
            if target.scope_type == ScopeType.TERRITORY:
                territory_dominion = await self.territories.get_dominion_id(
                    target.scope_id,
                )
            metadata = AuditMetadata(
                target_moderator_id=str(target.id),
                appointed_role=target.role.value,
                scope_type=target.scope_type.value,
                scope_id=target.scope_id,
            )

            decision = authorize_moderator_removal(actor, target, territory_dominion)
            if not decision.allowed:
                entry = await record_denial(
                    self.db, self.audit, actor, ModActionType.REMOVE_MOD,
                    decision, reason, metadata, target_user_hash=target.user_hash,
                )
                return AppointmentOutcome(decision, entry)

            await self.moderators.delete(target.id)
            entry = create_audit_entry(
                actor.id, ModActionType.REMOVE_MOD,
                reason=reason,
                target_user_hash=target.user_hash,
                metadata=metadata,
            )
            await self.audit.append(entry)
            await self.db.commit()

        logger.info(
            f"Removed {target.role.value}",
            extra={
                "moderator_id": actor.id, "user_hash": target.user_hash,
                "action_type": ModActionType.REMOVE_MOD.value,
                "outcome": AuditOutcome.APPLIED.value,
            },
        )
        return AppointmentOutcome(ALLOWED, entry, target)

    async def bootstrap_prime_sovereign(self, user_hash: UserHash) -> Moderator:
        """Seat the first prime sovereign. Only valid while no moderator exists."""
        if await self.moderators.list_all():
            raise ConcurrencyError("Moderators already exist; bootstrap refused.")
        moderator = Moderator(
            id=ModeratorId(uuid.uuid4()),
            user_hash=user_hash,
            role=ModeratorRole.PRIME_SOVEREIGN,
            scope_type=ScopeType.GLOBAL,
            appointed_at=datetime.now(timezone.utc),
        )
        await self.moderators.insert(moderator)
        await self.audit.append(create_audit_entry(
            moderator.id, ModActionType.APPOINT_MOD,
            reason="Initial prime sovereign",
            target_user_hash=user_hash,
            metadata=AuditMetadata(
                target_moderator_id=str(moderator.id),
                appointed_role=ModeratorRole.PRIME_SOVEREIGN.value,
                scope_type=ScopeType.GLOBAL.value,
            ),
        ))
        await self.db.commit()
        logger.info("Prime sovereign bootstrapped", extra={"user_hash": user_hash})
        return moderator

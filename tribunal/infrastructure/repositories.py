"""SQL Repositories — SQLAlchemy implementations of the core boundary protocols.

Invariants:
    - Repositories never commit: the calling service owns the transaction
    - Rows are translated to frozen core records before leaving this module
    - Datetimes leave as timezone-aware UTC (SQLite hands back naive values)
    - Audit repository only ever INSERTs and SELECTs

Design Decisions:
    - insert_if_latest compares the newest stored punishment with the one escalation
      was computed from, then claims the next (user_hash, sequence) slot. A stale
      read or a lost race for the slot raises ConcurrencyError and writes nothing
      (ADR: insert-if-no-newer-record)
    - Unique violations surface as ConcurrencyError: two writers claimed one record
    - Severity filter pushed into SQL as an action_type IN (...) list
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tribunal.core.audit_log import ACTION_SEVERITY, AuditFilters
from tribunal.core.domain_types import (
    ActionId, ContentId, DeviceHash, ModActionType, ModeratorId,
    ModeratorRole, PunishmentId, PunishmentLevel, ScopeId, ScopeType, UserHash,
)
from tribunal.core.errors import ConcurrencyError, ErrorContext, ResourceNotFoundError
from tribunal.core.fingerprint import BehaviorSignature, TimePattern
from tribunal.core.records import (
    AuditMetadata, ModAction, Moderator, UserPunishment,
)
from tribunal.models.geography import Dominion as DominionRow, Territory as TerritoryRow
from tribunal.models.mod_action import ModAction as ModActionRow
from tribunal.models.moderator import Moderator as ModeratorRow
from tribunal.models.user_fingerprint import UserFingerprint as FingerprintRow
from tribunal.models.user_punishment import UserPunishment as PunishmentRow

logger = logging.getLogger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ─── Row <-> Record ──────────────────────────────────────────────

def punishment_from_row(row: PunishmentRow) -> UserPunishment:
    return UserPunishment(
        id=PunishmentId(row.id),
        user_hash=UserHash(row.user_hash),
        punishment_level=PunishmentLevel(row.punishment_level),
        scope_type=ScopeType(row.scope_type),
        scope_id=ScopeId(row.scope_id) if row.scope_id else None,
        expires_at=_as_utc(row.expires_at),
        applied_by=ModeratorId(row.applied_by),
        reason=row.reason,
        created_at=_as_utc(row.created_at),
    )


def moderator_from_row(row: ModeratorRow) -> Moderator:
    return Moderator(
        id=ModeratorId(row.id),
        user_hash=UserHash(row.user_hash),
        role=ModeratorRole(row.role),
        scope_type=ScopeType(row.scope_type),
        scope_id=ScopeId(row.scope_id) if row.scope_id else None,
        appointed_by=ModeratorId(row.appointed_by) if row.appointed_by else None,
        appointed_at=_as_utc(row.appointed_at),
    )


def action_from_row(row: ModActionRow) -> ModAction:
    return ModAction(
        id=ActionId(row.id),
        moderator_id=ModeratorId(row.moderator_id),
        action_type=ModActionType(row.action_type),
        target_user_hash=UserHash(row.target_user_hash) if row.target_user_hash else None,
        target_content_id=ContentId(row.target_content_id) if row.target_content_id else None,
        reason=row.reason,
        metadata=AuditMetadata.from_dict(row.action_metadata),
        created_at=_as_utc(row.created_at),
    )


# ─── Punishments ─────────────────────────────────────────────────

class SqlPunishmentRepository:
    """PunishmentRepository over the user_punishments table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_active(
        self, user_hash: UserHash, now: datetime,
    ) -> list[UserPunishment]:
        result = await self.db.execute(
            select(PunishmentRow)
            .where(PunishmentRow.user_hash == user_hash)
            .where(
                (PunishmentRow.expires_at.is_(None))
                | (PunishmentRow.expires_at > now)
            )
            .order_by(PunishmentRow.created_at)
        )
        return [punishment_from_row(r) for r in result.scalars().all()]

    async def list_history(self, user_hash: UserHash) -> list[UserPunishment]:
        result = await self.db.execute(
            select(PunishmentRow)
            .where(PunishmentRow.user_hash == user_hash)
            .order_by(PunishmentRow.sequence)
        )
        return [punishment_from_row(r) for r in result.scalars().all()]

    async def insert_if_latest(
        self, record: UserPunishment, expected_latest_id: PunishmentId | None,
    ) -> None:
        result = await self.db.execute(
            select(PunishmentRow.id, PunishmentRow.sequence)
            .where(PunishmentRow.user_hash == record.user_hash)
            .order_by(PunishmentRow.sequence.desc())
            .limit(1)
        )
        head = result.one_or_none()
        if (head.id if head else None) != expected_latest_id:
            logger.warning(
                "Punishment history moved during escalation",
                extra={"user_hash": record.user_hash},
            )
            raise _escalation_conflict(record.user_hash)

        self.db.add(PunishmentRow(
            id=record.id,
            user_hash=record.user_hash,
            sequence=(head.sequence if head else 0) + 1,
            punishment_level=int(record.punishment_level),
            scope_type=record.scope_type.value,
            scope_id=record.scope_id,
            expires_at=record.expires_at,
            applied_by=record.applied_by,
            reason=record.reason,
            created_at=record.created_at,
        ))
        try:
            await self.db.flush()
        except IntegrityError as e:
            logger.warning(
                f"Escalation slot already claimed: {e.orig}",
                extra={"user_hash": record.user_hash},
            )
            raise _escalation_conflict(record.user_hash) from e

    async def save_expiry(self, records: list[UserPunishment]) -> None:
        for record in records:
            await self.db.execute(
                update(PunishmentRow)
                .where(PunishmentRow.id == record.id)
                .values(expires_at=record.expires_at)
            )


def _escalation_conflict(user_hash: UserHash) -> ConcurrencyError:
    return ConcurrencyError(
        "A newer punishment was recorded for this user; re-evaluate and retry.",
        ErrorContext(user_hash=user_hash),
    )


# ─── Moderators ──────────────────────────────────────────────────

class SqlModeratorRepository:
    """ModeratorRepository over the moderators table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_all(self) -> list[Moderator]:
        result = await self.db.execute(
            select(ModeratorRow).order_by(ModeratorRow.appointed_at)
        )
        return [moderator_from_row(r) for r in result.scalars().all()]

    async def get(self, moderator_id: ModeratorId) -> Moderator | None:
        row = await self.db.get(ModeratorRow, moderator_id)
        return moderator_from_row(row) if row else None

    async def get_by_user_hash(self, user_hash: UserHash) -> Moderator | None:
        result = await self.db.execute(
            select(ModeratorRow).where(ModeratorRow.user_hash == user_hash)
        )
        row = result.scalar_one_or_none()
        return moderator_from_row(row) if row else None

    async def insert(self, moderator: Moderator) -> None:
        self.db.add(ModeratorRow(
            id=moderator.id,
            user_hash=moderator.user_hash,
            role=moderator.role.value,
            scope_type=moderator.scope_type.value,
            scope_id=moderator.scope_id,
            appointed_by=moderator.appointed_by,
            appointed_at=moderator.appointed_at or datetime.now(timezone.utc),
        ))
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise ConcurrencyError(
                "User already holds a moderator office.",
                ErrorContext(user_hash=moderator.user_hash),
            ) from e

    async def delete(self, moderator_id: ModeratorId) -> None:
        await self.db.execute(
            delete(ModeratorRow).where(ModeratorRow.id == moderator_id)
        )


# ─── Audit ───────────────────────────────────────────────────────

class SqlAuditRepository:
    """Append-only AuditRepository over the mod_actions table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, entry: ModAction) -> None:
        self.db.add(ModActionRow(
            id=entry.id,
            moderator_id=entry.moderator_id,
            action_type=entry.action_type.value,
            target_user_hash=entry.target_user_hash,
            target_content_id=entry.target_content_id,
            reason=entry.reason,
            action_metadata=entry.metadata.to_dict(),
            created_at=entry.created_at,
        ))

    async def query(self, filters: AuditFilters) -> list[ModAction]:
        query = select(ModActionRow)
        if filters.moderator_id is not None:
            query = query.where(ModActionRow.moderator_id == filters.moderator_id)
        if filters.action_type is not None:
            query = query.where(ModActionRow.action_type == filters.action_type.value)
        if filters.target_user_hash is not None:
            query = query.where(
                ModActionRow.target_user_hash == filters.target_user_hash,
            )
        if filters.min_severity is not None:
            severe_enough = [
                a.value for a, s in ACTION_SEVERITY.items()
                if s >= filters.min_severity
            ]
            query = query.where(ModActionRow.action_type.in_(severe_enough))
        if filters.start_date is not None:
            query = query.where(ModActionRow.created_at >= _as_utc(filters.start_date))
        if filters.end_date is not None:
            query = query.where(ModActionRow.created_at <= _as_utc(filters.end_date))

        result = await self.db.execute(query.order_by(ModActionRow.created_at))
        return [action_from_row(r) for r in result.scalars().all()]


# ─── Geography ───────────────────────────────────────────────────

class SqlTerritoryDirectory:
    """TerritoryDirectory over the dominions and territories tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_dominion_id(self, territory_id: ScopeId) -> ScopeId | None:
        row = await self.db.get(TerritoryRow, territory_id)
        return ScopeId(row.dominion_id) if row else None

    async def upsert_dominion(self, dominion_id: ScopeId, name: str) -> None:
        row = await self.db.get(DominionRow, dominion_id)
        if row is None:
            self.db.add(DominionRow(id=dominion_id, name=name))
        else:
            row.name = name
        await self.db.flush()

    async def upsert_territory(
        self, territory_id: ScopeId, name: str, dominion_id: ScopeId,
    ) -> None:
        """Create or move a territory. The dominion must already exist."""
        if await self.db.get(DominionRow, dominion_id) is None:
            raise ResourceNotFoundError("Dominion", dominion_id)
        row = await self.db.get(TerritoryRow, territory_id)
        if row is None:
            self.db.add(TerritoryRow(id=territory_id, name=name, dominion_id=dominion_id))
        else:
            row.name = name
            row.dominion_id = dominion_id
        await self.db.flush()


# ─── Fingerprints ────────────────────────────────────────────────

class SqlFingerprintRepository:
    """FingerprintRepository over the user_fingerprints table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(
        self, user_hash: UserHash,
    ) -> tuple[BehaviorSignature, TimePattern] | None:
        row = await self.db.get(FingerprintRow, user_hash)
        if row is None:
            return None
        return (
            BehaviorSignature.from_dict(row.behavior_signature),
            TimePattern.from_dict(row.time_pattern),
        )

    async def save(
        self,
        user_hash: UserHash,
        device_hash: DeviceHash | None,
        signature: BehaviorSignature,
        time_pattern: TimePattern,
    ) -> None:
        row = await self.db.get(FingerprintRow, user_hash)
        if row is None:
            row = FingerprintRow(user_hash=user_hash)
            self.db.add(row)
        if device_hash is not None:
            row.device_hash = device_hash
        row.behavior_signature = signature.to_dict()
        row.time_pattern = time_pattern.to_dict()

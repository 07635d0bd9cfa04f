"""Boundary Protocols — contracts between the moderation core and its persistence collaborators.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types; records in, records out
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy (ADR: ExMA anti-pattern)
    - Async in Protocol: implementations do IO, but the pure functions that consume
      their results are never async — services orchestrate the awaits around the core
    - insert_if_latest is the store-side half of per-user serialization: it refuses
      to write when a newer record appeared after escalation was computed, and must
      hold across processes that do not share the in-memory locks
"""

from datetime import datetime
from typing import Protocol

from tribunal.core.audit_log import AuditFilters
from tribunal.core.domain_types import (
    DeviceHash, ModeratorId, PunishmentId, ScopeId, UserHash,
)
from tribunal.core.fingerprint import BehaviorSignature, TimePattern
from tribunal.core.records import ModAction, Moderator, UserPunishment


class PunishmentRepository(Protocol):
    """Contract for punishment persistence — implemented by shell."""
    async def list_active(
        self, user_hash: UserHash, now: datetime,
    ) -> list[UserPunishment]: ...
    async def list_history(self, user_hash: UserHash) -> list[UserPunishment]: ...
    async def insert_if_latest(
        self, record: UserPunishment, expected_latest_id: PunishmentId | None,
    ) -> None: ...
    async def save_expiry(self, records: list[UserPunishment]) -> None: ...


class ModeratorRepository(Protocol):
    """Contract for moderator persistence — implemented by shell."""
    async def list_all(self) -> list[Moderator]: ...
    async def get(self, moderator_id: ModeratorId) -> Moderator | None: ...
    async def get_by_user_hash(self, user_hash: UserHash) -> Moderator | None: ...
    async def insert(self, moderator: Moderator) -> None: ...
    async def delete(self, moderator_id: ModeratorId) -> None: ...


class AuditRepository(Protocol):
    """Contract for the append-only audit trail — implemented by shell."""
    async def append(self, entry: ModAction) -> None: ...
    async def query(self, filters: AuditFilters) -> list[ModAction]: ...


class TerritoryDirectory(Protocol):
    """Territory -> owning dominion lookup."""
    async def get_dominion_id(self, territory_id: ScopeId) -> ScopeId | None: ...


class FingerprintRepository(Protocol):
    """Contract for per-user behavior summaries — implemented by shell."""
    async def get(
        self, user_hash: UserHash,
    ) -> tuple[BehaviorSignature, TimePattern] | None: ...
    async def save(
        self,
        user_hash: UserHash,
        device_hash: DeviceHash | None,
        signature: BehaviorSignature,
        time_pattern: TimePattern,
    ) -> None: ...

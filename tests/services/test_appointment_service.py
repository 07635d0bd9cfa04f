"""Appointment Service — verifies the appointment tree, scope nesting and removal rules.

Invariants:
    - Out-of-tree roles raise before any write (no audit row)
    - Scope refusals and rank refusals are audited as denied
    - One office per user_hash
"""

import asyncio
from dataclasses import replace
from uuid import uuid4

import pytest

from tribunal.core.audit_log import AuditFilters
from tribunal.core.domain_types import AuditOutcome, ModActionType, ModeratorRole, ScopeType
from tribunal.core.errors import (
    ConcurrencyError, NonAppointableRoleError, ResourceNotFoundError,
)
from tribunal.infrastructure.key_locks import KeyedLocks
from tribunal.infrastructure.repositories import SqlAuditRepository, SqlModeratorRepository
from tribunal.services.appointment_service import AppointmentService

R = ModeratorRole
T = ScopeType.TERRITORY


async def _audit(db):
    return await SqlAuditRepository(db).query(AuditFilters())


async def test_king_appoints_steward_in_own_dominion(test_db, realm):
    outcome = await AppointmentService(test_db).appoint(
        realm["king"], "uh_new", R.STEWARD, T, "campus-b", "trusted regular",
    )
    assert outcome.decision.allowed
    stored = await SqlModeratorRepository(test_db).get_by_user_hash("uh_new")
    assert stored.role == R.STEWARD
    assert stored.appointed_by == realm["king"].id

    entry = (await _audit(test_db))[0]
    assert entry.action_type == ModActionType.APPOINT_MOD
    assert entry.metadata.appointed_role == "steward"
    assert entry.metadata.target_moderator_id == str(stored.id)


async def test_out_of_tree_role_raises_without_audit(test_db, realm):
    with pytest.raises(NonAppointableRoleError):
        await AppointmentService(test_db).appoint(
            realm["steward"], "uh_new", R.CROWNED_KING, ScopeType.DOMINION, "north", "coup",
        )
    assert await _audit(test_db) == []
    assert await SqlModeratorRepository(test_db).get_by_user_hash("uh_new") is None


async def test_appointment_outside_own_scope_is_denied(test_db, realm):
    outcome = await AppointmentService(test_db).appoint(
        realm["king"], "uh_new", R.STEWARD, T, "campus-z", "expansion",
    )
    assert not outcome.decision.allowed
    assert outcome.moderator is None
    entries = await _audit(test_db)
    assert entries[0].metadata.outcome == AuditOutcome.DENIED
    assert await SqlModeratorRepository(test_db).get_by_user_hash("uh_new") is None


async def test_second_office_for_same_user_conflicts(test_db, realm):
    with pytest.raises(ConcurrencyError):
        await AppointmentService(test_db).appoint(
            realm["steward"], "uh_mod_marshal", R.SENTINEL, T, "campus-a", "reshuffle",
        )


async def test_higher_rank_removes_lower_rank(test_db, realm):
    service = AppointmentService(test_db)
    outcome = await service.remove(realm["steward"], realm["marshal"].id, "inactive")
    assert outcome.decision.allowed
    assert await SqlModeratorRepository(test_db).get(realm["marshal"].id) is None

    entry = (await _audit(test_db))[0]
    assert entry.action_type == ModActionType.REMOVE_MOD
    assert entry.metadata.target_moderator_id == str(realm["marshal"].id)


async def test_equal_rank_cannot_remove(test_db, realm):
    outcome = await AppointmentService(test_db).remove(
        realm["hand"], realm["king"].id, "overreach",
    )
    assert not outcome.decision.allowed
    assert await SqlModeratorRepository(test_db).get(realm["king"].id) is not None
    assert (await _audit(test_db))[0].metadata.outcome == AuditOutcome.DENIED


async def test_removing_unknown_moderator_is_404(test_db, realm):
    from uuid import uuid4
    with pytest.raises(ResourceNotFoundError):
        await AppointmentService(test_db).remove(realm["prime"], uuid4(), "cleanup")


async def test_bootstrap_only_into_empty_realm(test_db):
    service = AppointmentService(test_db)
    prime = await service.bootstrap_prime_sovereign("uh_founder")
    assert prime.role == R.PRIME_SOVEREIGN
    assert prime.scope_type == ScopeType.GLOBAL
    with pytest.raises(ConcurrencyError):
        await service.bootstrap_prime_sovereign("uh_usurper")


# ─── Separate workers ────────────────────────────────────────────

async def test_unique_office_violation_is_a_conflict(shared_store):
    factory, moderators = shared_store
    async with factory() as session:
        taken = await SqlModeratorRepository(session).get(moderators["steward"].id)
        twin = replace(taken, id=uuid4())
        with pytest.raises(ConcurrencyError):
            await SqlModeratorRepository(session).insert(twin)
        await session.rollback()


async def test_racing_appointments_seat_one_office(shared_store):
    factory, moderators = shared_store

    async def worker(territory):
        async with factory() as session:
            service = AppointmentService(session, locks=KeyedLocks())
            try:
                await service.appoint(
                    moderators["king"], "uh_new", R.STEWARD, T, territory, "trusted",
                )
            except ConcurrencyError:
                await session.rollback()
                return "conflict"
            return "appointed"

    results = await asyncio.gather(worker("campus-a"), worker("campus-b"))
    assert sorted(results) == ["appointed", "conflict"]

    async with factory() as session:
        seated = [
            m for m in await SqlModeratorRepository(session).list_all()
            if m.user_hash == "uh_new"
        ]
    assert len(seated) == 1

"""Role Authority — verifies rank ordering, appointment tree, scope containment and constraints.

Tests:
    - can_act_on is irreflexive and asymmetric over every role pair
    - Appointment tree and out-of-tree rejection
    - Scope containment for global, dominion and territory moderators
    - Per-role constraints and the composite authorize_* decisions
"""

from itertools import product
from uuid import uuid4

import pytest

from tribunal.core.domain_types import ModActionType, ModeratorRole, ScopeType
from tribunal.core.errors import NonAppointableRoleError, ScopeShapeError
from tribunal.core.records import Moderator
from tribunal.core.role_authority import (
    authorize_appointment_scope, authorize_moderator_removal, authorize_sanction,
    can_act_in_scope, can_act_on, can_export_audit_log, can_read_audit_log,
    check_appointment, check_scope_shape, get_appointable_roles, get_role_display,
    has_permission, validate_role_constraints,
)

R = ModeratorRole


def _mod(role, scope_type=ScopeType.GLOBAL, scope_id=None):
    return Moderator(
        id=uuid4(), user_hash=f"uh_{role.value}", role=role,
        scope_type=scope_type, scope_id=scope_id,
    )


# ─── Hierarchy ───────────────────────────────────────────────────

def test_can_act_on_is_irreflexive():
    for role in R:
        assert not can_act_on(role, role)


def test_can_act_on_is_asymmetric_for_every_pair():
    for a, b in product(R, R):
        assert not (can_act_on(a, b) and can_act_on(b, a))


def test_prime_sovereign_outranks_everyone_else():
    for role in R:
        if role != R.PRIME_SOVEREIGN:
            assert can_act_on(R.PRIME_SOVEREIGN, role)
            assert not can_act_on(role, R.PRIME_SOVEREIGN)


def test_equal_ranks_are_incomparable():
    assert not can_act_on(R.THE_HAND, R.CROWNED_KING)
    assert not can_act_on(R.CROWNED_KING, R.THE_HAND)
    assert not can_act_on(R.SENTINEL, R.VEIL_WATCHER)
    assert not can_act_on(R.VEIL_WATCHER, R.SENTINEL)


def test_steward_acts_on_marshal_not_king():
    assert can_act_on(R.STEWARD, R.MARSHAL)
    assert not can_act_on(R.STEWARD, R.CROWNED_KING)


# ─── Appointment ─────────────────────────────────────────────────

def test_appointment_tree():
    assert get_appointable_roles(R.PRIME_SOVEREIGN) == {R.THE_HAND, R.CROWNED_KING}
    assert get_appointable_roles(R.CROWNED_KING) == {R.STEWARD}
    assert get_appointable_roles(R.STEWARD) == {R.MARSHAL, R.SENTINEL}
    assert get_appointable_roles(R.MARSHAL) == {R.VEIL_WATCHER}
    for leaf in (R.THE_HAND, R.SENTINEL, R.VEIL_WATCHER):
        assert get_appointable_roles(leaf) == frozenset()


def test_check_appointment_accepts_in_tree_role():
    check_appointment(R.STEWARD, R.SENTINEL)


def test_check_appointment_rejects_out_of_tree_role():
    with pytest.raises(NonAppointableRoleError) as exc:
        check_appointment(R.STEWARD, R.CROWNED_KING)
    assert exc.value.code == "NON_APPOINTABLE_ROLE"
    assert exc.value.http_status == 400


def test_prime_sovereign_cannot_appoint_a_steward_directly():
    with pytest.raises(NonAppointableRoleError):
        check_appointment(R.PRIME_SOVEREIGN, R.STEWARD)


# ─── Scope ───────────────────────────────────────────────────────

def test_global_moderator_reaches_every_scope():
    prime = _mod(R.PRIME_SOVEREIGN)
    assert can_act_in_scope(prime, ScopeType.GLOBAL, None)
    assert can_act_in_scope(prime, ScopeType.DOMINION, "north")
    assert can_act_in_scope(prime, ScopeType.TERRITORY, "campus-a")


def test_dominion_moderator_reaches_own_territories_only():
    king = _mod(R.CROWNED_KING, ScopeType.DOMINION, "north")
    assert can_act_in_scope(king, ScopeType.DOMINION, "north")
    assert not can_act_in_scope(king, ScopeType.DOMINION, "south")
    assert can_act_in_scope(king, ScopeType.TERRITORY, "campus-a", "north")
    assert not can_act_in_scope(king, ScopeType.TERRITORY, "campus-z", "south")
    assert not can_act_in_scope(king, ScopeType.TERRITORY, "campus-a", None)
    assert not can_act_in_scope(king, ScopeType.GLOBAL, None)


def test_territory_moderator_reaches_exactly_its_territory():
    steward = _mod(R.STEWARD, ScopeType.TERRITORY, "campus-a")
    assert can_act_in_scope(steward, ScopeType.TERRITORY, "campus-a")
    assert not can_act_in_scope(steward, ScopeType.TERRITORY, "campus-b")
    assert not can_act_in_scope(steward, ScopeType.DOMINION, "north")
    assert not can_act_in_scope(steward, ScopeType.GLOBAL, None)


def test_check_scope_shape():
    check_scope_shape(ScopeType.GLOBAL, None)
    check_scope_shape(ScopeType.TERRITORY, "campus-a")
    with pytest.raises(ScopeShapeError):
        check_scope_shape(ScopeType.GLOBAL, "campus-a")
    with pytest.raises(ScopeShapeError):
        check_scope_shape(ScopeType.DOMINION, None)


# ─── Constraints ─────────────────────────────────────────────────

def test_veil_watcher_cannot_shadow_ban():
    check = validate_role_constraints(R.VEIL_WATCHER, "shadow_ban")
    assert not check.valid
    assert check.reason == "Veil Watchers cannot make single-user decisions. Flag to Marshal."


def test_sentinel_cannot_detect_patterns():
    check = validate_role_constraints(R.SENTINEL, "detect_patterns")
    assert not check.valid
    assert check.reason == "Sentinels execute pre-approved actions only. No independent judgment."


def test_marshal_cannot_permanently_ban():
    check = validate_role_constraints(R.MARSHAL, ModActionType.PERMANENT_BAN)
    assert not check.valid
    assert check.reason == "Marshals cannot permanently ban or speak publicly."


def test_unlisted_actions_are_valid():
    assert validate_role_constraints(R.MARSHAL, "cooldown").valid
    assert validate_role_constraints(R.PRIME_SOVEREIGN, "permanent_ban").valid
    assert validate_role_constraints(R.VEIL_WATCHER, "flag_silently").valid


# ─── Composite Authorization ─────────────────────────────────────

def test_authorize_sanction_reports_constraint_before_scope():
    watcher = _mod(R.VEIL_WATCHER, ScopeType.TERRITORY, "campus-a")
    decision = authorize_sanction(
        watcher, ModActionType.SHADOW_BAN, ScopeType.TERRITORY, "campus-b",
    )
    assert not decision.allowed
    assert decision.reason.startswith("Veil Watchers")


def test_authorize_sanction_out_of_scope():
    steward = _mod(R.STEWARD, ScopeType.TERRITORY, "campus-a")
    decision = authorize_sanction(
        steward, ModActionType.COOLDOWN, ScopeType.TERRITORY, "campus-b",
    )
    assert not decision.allowed
    assert "campus-b" in decision.reason


def test_authorize_sanction_allowed_in_own_territory():
    marshal = _mod(R.MARSHAL, ScopeType.TERRITORY, "campus-a")
    decision = authorize_sanction(
        marshal, ModActionType.CONTENT_LOCK, ScopeType.TERRITORY, "campus-a",
    )
    assert decision.allowed
    assert decision.reason is None


def test_authorize_removal_requires_rank():
    hand = _mod(R.THE_HAND)
    king = _mod(R.CROWNED_KING, ScopeType.DOMINION, "north")
    decision = authorize_moderator_removal(hand, king)
    assert not decision.allowed
    assert "Crowned King" in decision.reason


def test_authorize_removal_requires_scope_over_target():
    king = _mod(R.CROWNED_KING, ScopeType.DOMINION, "north")
    steward = _mod(R.STEWARD, ScopeType.TERRITORY, "campus-z")
    assert not authorize_moderator_removal(king, steward, "south").allowed
    assert authorize_moderator_removal(king, steward, "north").allowed


def test_authorize_appointment_scope():
    king = _mod(R.CROWNED_KING, ScopeType.DOMINION, "north")
    assert authorize_appointment_scope(
        king, ScopeType.TERRITORY, "campus-a", "north",
    ).allowed
    assert not authorize_appointment_scope(king, ScopeType.GLOBAL, None).allowed


# ─── Capabilities ────────────────────────────────────────────────

def test_role_display_and_permissions():
    assert get_role_display(R.MARSHAL)["title"] == "Marshal"
    assert has_permission(R.STEWARD, "shadow_ban")
    assert not has_permission(R.SENTINEL, "shadow_ban")


def test_audit_access_by_role():
    assert can_read_audit_log(R.PRIME_SOVEREIGN)
    assert can_read_audit_log(R.THE_HAND)
    assert can_read_audit_log(R.CROWNED_KING)
    assert not can_read_audit_log(R.STEWARD)
    assert can_export_audit_log(R.PRIME_SOVEREIGN)
    assert not can_export_audit_log(R.THE_HAND)
    assert not can_export_audit_log(R.MARSHAL)

"""Domain Types — verifies identifier wrappers, window constants and enum values.

Tests:
    - NewType wrappers are transparent at runtime
    - Ladder bounds and rolling-window sizes
    - Enum members serialize to their wire values
"""

from uuid import uuid4

from tribunal.core.domain_types import (
    ACTIVITY_HOURS_WINDOW, INTERACTION_PATTERNS_WINDOW,
    MAX_PUNISHMENT_LEVEL, MIN_PUNISHMENT_LEVEL, PREFERRED_POST_TYPES_WINDOW,
    AuditOutcome, ModActionType, ModeratorId, ModeratorRole,
    PunishmentLevel, ScopeType, UserAction, UserHash,
)


def test_identity_types_are_transparent():
    uid = uuid4()
    assert ModeratorId(uid) == uid
    assert UserHash("uh_abc") == "uh_abc"


def test_ladder_bounds():
    assert (MIN_PUNISHMENT_LEVEL, MAX_PUNISHMENT_LEVEL) == (1, 6)
    assert [int(level) for level in PunishmentLevel] == [1, 2, 3, 4, 5, 6]


def test_rolling_window_sizes():
    assert ACTIVITY_HOURS_WINDOW == 24
    assert PREFERRED_POST_TYPES_WINDOW == 5
    assert INTERACTION_PATTERNS_WINDOW == 50


def test_seven_roles():
    assert len(ModeratorRole) == 7
    assert ModeratorRole("veil_watcher") is ModeratorRole.VEIL_WATCHER


def test_twelve_action_kinds():
    assert len(ModActionType) == 12
    assert ModActionType.APPOINT_MOD.value == "appoint_mod"


def test_enums_compare_to_wire_values():
    assert ScopeType.GLOBAL == "global"
    assert UserAction.LIKE == "like"
    assert AuditOutcome.DENIED == "denied"

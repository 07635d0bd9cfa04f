"""Role Authority — who outranks whom, who appoints whom, where and what each role may act on.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - can_act_on is irreflexive and asymmetric: equal ranks never act on each other
    - Appointment tree is fixed; an out-of-tree appointment raises before any write
    - Dominion membership of a territory is resolved by the caller (TerritoryDirectory)
      and passed in — core never looks it up

Design Decisions:
    - Static tables as MappingProxyType/frozenset built at import (ADR: process-wide config, no mutation)
    - Authorization returns AuthorizationDecision values; chains stop at first failure
      (ADR: same chaining shape as the other enforce_* rule sets)
"""

from types import MappingProxyType

from tribunal.core.domain_types import (
    ModActionType, ModeratorRole, ScopeId, ScopeType,
)
from tribunal.core.errors import NonAppointableRoleError, ScopeShapeError
from tribunal.core.records import (
    ALLOWED, AuthorizationDecision, ConstraintCheck, Moderator,
)

R = ModeratorRole


# ─── Static Tables ───────────────────────────────────────────────

# Lower = more authority. Ties are incomparable, not mutually actionable.
ROLE_RANK = MappingProxyType({
    R.PRIME_SOVEREIGN: 0,
    R.THE_HAND: 1,
    R.CROWNED_KING: 1,
    R.STEWARD: 2,
    R.MARSHAL: 3,
    R.SENTINEL: 4,
    R.VEIL_WATCHER: 4,
})

APPOINTABLE_ROLES = MappingProxyType({
    R.PRIME_SOVEREIGN: frozenset({R.THE_HAND, R.CROWNED_KING}),
    R.THE_HAND: frozenset(),
    R.CROWNED_KING: frozenset({R.STEWARD}),
    R.STEWARD: frozenset({R.MARSHAL, R.SENTINEL}),
    R.MARSHAL: frozenset({R.VEIL_WATCHER}),
    R.SENTINEL: frozenset(),
    R.VEIL_WATCHER: frozenset(),
})

# role -> (forbidden action kinds, reason shown to the moderator)
ROLE_CONSTRAINTS = MappingProxyType({
    R.VEIL_WATCHER: (
        frozenset({"shadow_ban", "cooldown", "content_lock", "permanent_ban"}),
        "Veil Watchers cannot make single-user decisions. Flag to Marshal.",
    ),
    R.SENTINEL: (
        frozenset({"detect_patterns", "review_reports", "prepare_ban_cases"}),
        "Sentinels execute pre-approved actions only. No independent judgment.",
    ),
    R.MARSHAL: (
        frozenset({"permanent_ban", "public_announcement"}),
        "Marshals cannot permanently ban or speak publicly.",
    ),
})

ROLE_DISPLAY = MappingProxyType({
    R.PRIME_SOVEREIGN: ("Prime Sovereign", "Absolute authority. Silent. Invisible."),
    R.THE_HAND: ("The Hand", "Crisis resolver. The Hand doesn't rule. The Hand ends things."),
    R.CROWNED_KING: ("Crowned King", "Dominion authority. Judges and warlords."),
    R.STEWARD: ("Steward", "Territory head. Authority through responsibility."),
    R.MARSHAL: ("Marshal", "The administrator. The butcher. The janitor."),
    R.SENTINEL: ("Sentinel", "Enforcer. Executes pre-approved actions only."),
    R.VEIL_WATCHER: ("Veil Watcher", "Invisible surveillance. Pattern detection only."),
})

ROLE_PERMISSIONS = MappingProxyType({
    R.PRIME_SOVEREIGN: frozenset({
        "appoint_king", "appoint_hand", "remove_anyone", "access_all_logs",
        "override_all", "freeze_regions", "delete_territories", "export_all_data",
    }),
    R.THE_HAND: frozenset({
        "override_kings", "freeze_territories", "mass_delete",
        "reset_mod_structure", "access_all_logs",
    }),
    R.CROWNED_KING: frozenset({
        "appoint_steward", "remove_steward", "audit_territories",
        "review_escalated_bans", "impose_regional_rules",
    }),
    R.STEWARD: frozenset({
        "shadow_ban", "freeze_posts", "lock_threads", "restrict_anon_chats",
        "escalate_bans", "appoint_marshal", "appoint_sentinel",
    }),
    R.MARSHAL: frozenset({
        "review_reports", "enforce_cooldowns", "silence_users",
        "prepare_ban_cases", "appoint_watcher",
    }),
    R.SENTINEL: frozenset({"execute_approved_actions"}),
    R.VEIL_WATCHER: frozenset({"monitor_feeds", "detect_patterns", "flag_silently"}),
})

AUDIT_READ_PERMISSIONS = frozenset({"access_all_logs", "audit_territories"})
AUDIT_EXPORT_PERMISSIONS = frozenset({"export_all_data", "audit_territories"})


# ─── Hierarchy ───────────────────────────────────────────────────

def can_act_on(actor_role: ModeratorRole, target_role: ModeratorRole) -> bool:
    """True iff actor is strictly more authoritative than target."""
    return ROLE_RANK[actor_role] < ROLE_RANK[target_role]


def can_act_in_scope(
    moderator: Moderator,
    target_scope_type: ScopeType,
    target_scope_id: ScopeId | None,
    territory_dominion_id: ScopeId | None = None,
) -> bool:
    """Scope containment check.

    ``territory_dominion_id`` is the owning dominion of ``target_scope_id`` when the
    target is a territory; the shell resolves it through TerritoryDirectory.
    """
    if moderator.scope_type == ScopeType.GLOBAL:
        return True

    if moderator.scope_type == ScopeType.DOMINION:
        if target_scope_type == ScopeType.DOMINION:
            return target_scope_id == moderator.scope_id
        if target_scope_type == ScopeType.TERRITORY:
            return (
                territory_dominion_id is not None
                and territory_dominion_id == moderator.scope_id
            )
        return False

    if moderator.scope_type == ScopeType.TERRITORY:
        return (
            target_scope_type == ScopeType.TERRITORY
            and target_scope_id == moderator.scope_id
        )

    return False


def check_scope_shape(scope_type: ScopeType, scope_id: ScopeId | None) -> None:
    """Raise ScopeShapeError unless scope_id is present iff scope is not global."""
    if scope_type == ScopeType.GLOBAL and scope_id is not None:
        raise ScopeShapeError(scope_type.value)
    if scope_type != ScopeType.GLOBAL and not scope_id:
        raise ScopeShapeError(scope_type.value)


# ─── Appointment ─────────────────────────────────────────────────

def get_appointable_roles(role: ModeratorRole) -> frozenset[ModeratorRole]:
    return APPOINTABLE_ROLES[role]


def check_appointment(
    appointer_role: ModeratorRole, requested_role: ModeratorRole,
) -> None:
    """Raise NonAppointableRoleError for any role outside the appointment tree."""
    if requested_role not in APPOINTABLE_ROLES[appointer_role]:
        raise NonAppointableRoleError(appointer_role.value, requested_role.value)


# ─── Constraints & Capabilities ──────────────────────────────────

def validate_role_constraints(role: ModeratorRole, action: str) -> ConstraintCheck:
    """Per-role forbidden action kinds. Everything not listed is valid."""
    if isinstance(action, ModActionType):
        action = action.value
    constraint = ROLE_CONSTRAINTS.get(role)
    if constraint is not None:
        forbidden, reason = constraint
        if action in forbidden:
            return ConstraintCheck(valid=False, reason=reason)
    return ConstraintCheck(valid=True)


def get_role_display(role: ModeratorRole) -> dict:
    title, description = ROLE_DISPLAY[role]
    return {"role": role.value, "title": title, "description": description}


def get_role_permissions(role: ModeratorRole) -> frozenset[str]:
    return ROLE_PERMISSIONS[role]


def has_permission(role: ModeratorRole, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS[role]


def can_read_audit_log(role: ModeratorRole) -> bool:
    return bool(ROLE_PERMISSIONS[role] & AUDIT_READ_PERMISSIONS)


def can_export_audit_log(role: ModeratorRole) -> bool:
    return bool(ROLE_PERMISSIONS[role] & AUDIT_EXPORT_PERMISSIONS)


# ─── Composite Authorization ─────────────────────────────────────

def authorize_sanction(
    actor: Moderator,
    action_type: ModActionType,
    target_scope_type: ScopeType,
    target_scope_id: ScopeId | None,
    territory_dominion_id: ScopeId | None = None,
) -> AuthorizationDecision:
    """Constraint check, then scope check. First failure wins."""
    constraint = validate_role_constraints(actor.role, action_type)
    if not constraint.valid:
        return AuthorizationDecision(allowed=False, reason=constraint.reason)
    if not can_act_in_scope(
        actor, target_scope_type, target_scope_id, territory_dominion_id,
    ):
        return AuthorizationDecision(
            allowed=False,
            reason=f"{_title(actor)} has no authority in {_scope_label(target_scope_type, target_scope_id)}.",
        )
    return ALLOWED


def authorize_moderator_removal(
    actor: Moderator,
    target: Moderator,
    territory_dominion_id: ScopeId | None = None,
) -> AuthorizationDecision:
    """Rank check, then scope check against the target's own scope."""
    if not can_act_on(actor.role, target.role):
        return AuthorizationDecision(
            allowed=False,
            reason=f"{_title(actor)} cannot act on {ROLE_DISPLAY[target.role][0]}.",
        )
    if not can_act_in_scope(
        actor, target.scope_type, target.scope_id, territory_dominion_id,
    ):
        return AuthorizationDecision(
            allowed=False,
            reason=f"{_title(actor)} has no authority in {_scope_label(target.scope_type, target.scope_id)}.",
        )
    return ALLOWED


def authorize_appointment_scope(
    actor: Moderator,
    scope_type: ScopeType,
    scope_id: ScopeId | None,
    territory_dominion_id: ScopeId | None = None,
) -> AuthorizationDecision:
    """An appointee's scope must lie inside the appointer's scope."""
    if not can_act_in_scope(actor, scope_type, scope_id, territory_dominion_id):
        return AuthorizationDecision(
            allowed=False,
            reason=f"{_title(actor)} cannot appoint into {_scope_label(scope_type, scope_id)}.",
        )
    return ALLOWED


def _title(moderator: Moderator) -> str:
    return ROLE_DISPLAY[moderator.role][0]


def _scope_label(scope_type: ScopeType, scope_id: ScopeId | None) -> str:
    if scope_type == ScopeType.GLOBAL:
        return "global scope"
    return f"{scope_type.value} '{scope_id}'"

"""Request Schemas — verifies boundary validation of moderation, audit and fingerprint payloads.

Tests:
    - Reasons are stripped and must be non-empty
    - scope_id present iff scope is not global
    - Audit query converts to core filters and rejects naive dates
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from tribunal.core.domain_types import ModActionType, ScopeType
from tribunal.core.errors import InvalidAuditFilterError
from tribunal.schemas.audit import AuditQuery
from tribunal.schemas.fingerprint import RegisterRequest
from tribunal.schemas.moderation import (
    AppointRequest, ContentActionRequest, ImposePunishmentRequest,
)


# ─── Moderation ──────────────────────────────────────────────────

def test_reason_is_stripped():
    body = ImposePunishmentRequest(
        user_hash="uh_x", scope_type="global", reason="  spam  ",
    )
    assert body.reason == "spam"
    assert body.scope_type == ScopeType.GLOBAL


def test_whitespace_reason_rejected():
    with pytest.raises(ValidationError):
        ImposePunishmentRequest(user_hash="uh_x", scope_type="global", reason="   ")


def test_global_scope_rejects_scope_id():
    with pytest.raises(ValidationError):
        ImposePunishmentRequest(
            user_hash="uh_x", scope_type="global", scope_id="campus-a", reason="spam",
        )


def test_territory_scope_requires_scope_id():
    with pytest.raises(ValidationError):
        AppointRequest(
            user_hash="uh_x", role="steward", scope_type="territory", reason="trusted",
        )


@pytest.mark.parametrize("level", [0, 7])
def test_level_bounds(level):
    with pytest.raises(ValidationError):
        ImposePunishmentRequest(
            user_hash="uh_x", scope_type="global", reason="spam", level=level,
        )


def test_unknown_role_rejected():
    with pytest.raises(ValidationError):
        AppointRequest(
            user_hash="uh_x", role="emperor", scope_type="global", reason="hubris",
        )


def test_content_action_needs_a_target():
    with pytest.raises(ValidationError):
        ContentActionRequest(
            action_type="content_remove", scope_type="global", reason="gore",
        )
    body = ContentActionRequest(
        action_type="content_remove", scope_type="global", reason="gore",
        target_content_id="post-1",
    )
    assert body.action_type == ModActionType.CONTENT_REMOVE


# ─── Audit ───────────────────────────────────────────────────────

def test_audit_query_converts_to_filters():
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    filters = AuditQuery(start_date=start, min_severity=3).to_filters()
    assert filters.start_date == start
    assert filters.min_severity == 3
    assert filters.end_date is None


def test_audit_query_rejects_naive_dates():
    with pytest.raises(InvalidAuditFilterError):
        AuditQuery(end_date=datetime(2026, 1, 1)).to_filters()


# ─── Fingerprint ─────────────────────────────────────────────────

def test_register_requires_email_shape():
    with pytest.raises(ValidationError):
        RegisterRequest(email="not-an-email", account_id="acct-1")


def test_register_offset_bounds():
    with pytest.raises(ValidationError):
        RegisterRequest(email="a@b.c", account_id="acct-1", timezone_offset_minutes=900)

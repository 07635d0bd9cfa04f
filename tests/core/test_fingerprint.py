"""Identity Fingerprint — verifies one-way hashing and the rolling behavior windows.

Tests:
    - Hashes are deterministic, salted, prefixed and leak nothing of the input
    - Email case and surrounding whitespace never split an identity
    - Activity windows are bounded and update_behavior_signature is non-mutating
"""

import hashlib
import json
from datetime import datetime, timedelta, timezone

from tribunal.core.domain_types import UserAction
from tribunal.core.fingerprint import (
    BehaviorSignature, DeviceFingerprint, TimePattern, UserActivity,
    generate_user_hash, hash_device, hash_identity, init_behavior_signature,
    init_time_pattern, update_behavior_signature,
)

T0 = datetime(2026, 3, 1, 0, 0, tzinfo=timezone.utc)


# ─── Hashing ─────────────────────────────────────────────────────

def test_user_hash_is_deterministic_and_prefixed():
    first = generate_user_hash("ada@uni.edu", "acct-1", "salt")
    assert first == generate_user_hash("ada@uni.edu", "acct-1", "salt")
    assert first.startswith("uh_")
    assert len(first) == 3 + 64


def test_user_hash_ignores_email_case_and_padding():
    assert generate_user_hash("  Ada@Uni.EDU ", "acct-1", "salt") == generate_user_hash(
        "ada@uni.edu", "acct-1", "salt",
    )


def test_user_hash_depends_on_salt_and_account():
    base = generate_user_hash("ada@uni.edu", "acct-1", "salt")
    assert base != generate_user_hash("ada@uni.edu", "acct-1", "pepper")
    assert base != generate_user_hash("ada@uni.edu", "acct-2", "salt")


def test_user_hash_does_not_contain_identity():
    digest = hash_identity("ada@uni.edu", "salt")
    assert "ada" not in digest
    assert "uni.edu" not in digest


def test_device_hash_is_stable_and_field_sensitive():
    device = DeviceFingerprint(user_agent="Firefox", timezone="Europe/Lisbon")
    assert hash_device(device, "salt") == hash_device(
        DeviceFingerprint(user_agent="Firefox", timezone="Europe/Lisbon"), "salt",
    )
    assert hash_device(device, "salt").startswith("dh_")
    assert hash_device(device, "salt") != hash_device(
        DeviceFingerprint(user_agent="Safari"), "salt",
    )


def test_device_hash_is_keyed_by_salt():
    device = DeviceFingerprint(user_agent="Firefox", platform="Linux")
    canonical = json.dumps({
        "ua": "Firefox", "lang": "en", "tz": "UTC",
        "screen": "0x0", "platform": "Linux",
    }, sort_keys=True, separators=(",", ":"))
    unkeyed = hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    assert hash_device(device, "salt-a") != hash_device(device, "salt-b")
    assert hash_device(device, "salt-a") != f"dh_{unkeyed}"


# ─── Behavior Summaries ──────────────────────────────────────────

def test_initial_summaries_are_empty():
    signature = init_behavior_signature()
    assert signature == BehaviorSignature()
    pattern = init_time_pattern(T0, timezone_offset_minutes=-60)
    assert pattern.first_seen == pattern.last_active == T0.isoformat()
    assert pattern.timezone_offset == -60


def test_update_records_hour_post_type_and_interaction():
    activity = UserActivity(UserAction.POST, "confession", T0 + timedelta(hours=13))
    updated = update_behavior_signature(init_behavior_signature(), activity)
    assert updated.activity_hours == (13,)
    assert updated.preferred_post_types == ("confession",)
    assert updated.interaction_patterns == ("post",)


def test_update_never_mutates_input():
    original = init_behavior_signature()
    update_behavior_signature(original, UserActivity(UserAction.LIKE, occurred_at=T0))
    assert original == BehaviorSignature()


def test_hours_are_distinct_and_capped_at_24():
    signature = init_behavior_signature()
    for h in range(30):
        signature = update_behavior_signature(
            signature, UserActivity(UserAction.VIEW, occurred_at=T0 + timedelta(hours=h)),
        )
    assert len(signature.activity_hours) == 24
    assert len(set(signature.activity_hours)) == 24


def test_preferred_post_types_keep_five_most_recent_distinct():
    signature = init_behavior_signature()
    for kind in ["a", "b", "a", "c", "d", "e", "f"]:
        signature = update_behavior_signature(
            signature, UserActivity(UserAction.POST, kind, T0),
        )
    assert signature.preferred_post_types == ("b", "c", "d", "e", "f")


def test_non_post_activity_ignores_post_type():
    signature = update_behavior_signature(
        init_behavior_signature(), UserActivity(UserAction.COMMENT, "poll", T0),
    )
    assert signature.preferred_post_types == ()


def test_interaction_patterns_fifo_capped_at_50():
    signature = init_behavior_signature()
    for i in range(60):
        kind = UserAction.LIKE if i < 55 else UserAction.CHAT
        signature = update_behavior_signature(signature, UserActivity(kind, occurred_at=T0))
    assert len(signature.interaction_patterns) == 50
    assert signature.interaction_patterns[-5:] == ("chat",) * 5


def test_hour_taken_in_utc():
    local = datetime(2026, 3, 1, 9, 0, tzinfo=timezone(timedelta(hours=5)))
    signature = update_behavior_signature(
        init_behavior_signature(), UserActivity(UserAction.VIEW, occurred_at=local),
    )
    assert signature.activity_hours == (4,)


def test_summaries_round_trip_through_dicts():
    signature = BehaviorSignature(1.5, ("poll",), (3, 4), ("like",))
    assert BehaviorSignature.from_dict(signature.to_dict()) == signature
    pattern = TimePattern(T0.isoformat(), T0.isoformat(), (3,), 120)
    assert TimePattern.from_dict(pattern.to_dict()) == pattern

"""Identity Fingerprint — one-way pseudonymous identifiers and rolling behavior summaries.

Invariants:
    - All functions are PURE and total: no IO, no errors
    - hash_identity / hash_device are deterministic and one-way (HMAC-SHA256, salt-keyed)
    - The reversible identity is consumed, never returned or stored
    - update_behavior_signature never mutates its input
    - Windows: 24 distinct activity hours, 5 distinct preferred post types, 50 interactions (FIFO)

Design Decisions:
    - HMAC keyed by the configured salt: an attacker without the salt cannot
      brute-force hashes from known emails or enumerate the small space of
      device descriptors (ADR: anonymity rests on the digest)
    - Device descriptor canonicalized as sorted-key JSON before hashing
"""

import hashlib
import hmac
import json
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from tribunal.core.domain_types import (
    ACTIVITY_HOURS_WINDOW, INTERACTION_PATTERNS_WINDOW, PREFERRED_POST_TYPES_WINDOW,
    DeviceHash, UserAction, UserHash,
)

USER_HASH_PREFIX = "uh_"
DEVICE_HASH_PREFIX = "dh_"


@dataclass(frozen=True)
class DeviceFingerprint:
    """Structured device descriptor supplied by the client."""
    user_agent: str = "server"
    language: str = "en"
    timezone: str = "UTC"
    screen_resolution: str = "0x0"
    platform: str = "server"


@dataclass(frozen=True)
class UserActivity:
    """One observed user action feeding the behavior signature."""
    kind: UserAction
    post_type: str | None = None
    occurred_at: datetime | None = None


@dataclass(frozen=True)
class BehaviorSignature:
    avg_session_duration: float = 0.0
    preferred_post_types: tuple[str, ...] = ()
    activity_hours: tuple[int, ...] = ()
    interaction_patterns: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "avg_session_duration": self.avg_session_duration,
            "preferred_post_types": list(self.preferred_post_types),
            "activity_hours": list(self.activity_hours),
            "interaction_patterns": list(self.interaction_patterns),
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "BehaviorSignature":
        data = data or {}
        return cls(
            avg_session_duration=float(data.get("avg_session_duration", 0.0)),
            preferred_post_types=tuple(data.get("preferred_post_types", ())),
            activity_hours=tuple(int(h) for h in data.get("activity_hours", ())),
            interaction_patterns=tuple(data.get("interaction_patterns", ())),
        )


@dataclass(frozen=True)
class TimePattern:
    first_seen: str
    last_active: str
    typical_active_hours: tuple[int, ...] = ()
    timezone_offset: int = 0  # minutes behind UTC

    def to_dict(self) -> dict:
        return {
            "first_seen": self.first_seen,
            "last_active": self.last_active,
            "typical_active_hours": list(self.typical_active_hours),
            "timezone_offset": self.timezone_offset,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TimePattern":
        return cls(
            first_seen=data["first_seen"],
            last_active=data["last_active"],
            typical_active_hours=tuple(data.get("typical_active_hours", ())),
            timezone_offset=int(data.get("timezone_offset", 0)),
        )


# ─── Hashing ─────────────────────────────────────────────────────

def hash_identity(identity_material: str, salt: str) -> UserHash:
    """Keyed one-way digest of identity material."""
    digest = hmac.new(
        salt.encode("utf-8"), identity_material.encode("utf-8"), hashlib.sha256,
    ).hexdigest()
    return UserHash(f"{USER_HASH_PREFIX}{digest}")


def generate_user_hash(email: str, account_id: str, salt: str) -> UserHash:
    """UserHash for an account. Email is case-folded so casing never splits an identity."""
    return hash_identity(f"{email.strip().lower()}:{account_id}", salt)


def hash_device(fingerprint: DeviceFingerprint, salt: str) -> DeviceHash:
    canonical = json.dumps({
        "ua": fingerprint.user_agent,
        "lang": fingerprint.language,
        "tz": fingerprint.timezone,
        "screen": fingerprint.screen_resolution,
        "platform": fingerprint.platform,
    }, sort_keys=True, separators=(",", ":"))
    digest = hmac.new(
        salt.encode("utf-8"), canonical.encode("utf-8"), hashlib.sha256,
    ).hexdigest()
    return DeviceHash(f"{DEVICE_HASH_PREFIX}{digest}")


# ─── Behavior Summaries ──────────────────────────────────────────

def init_behavior_signature() -> BehaviorSignature:
    return BehaviorSignature()


def init_time_pattern(
    now: datetime | None = None, timezone_offset_minutes: int = 0,
) -> TimePattern:
    stamp = (now or datetime.now(timezone.utc)).isoformat()
    return TimePattern(
        first_seen=stamp,
        last_active=stamp,
        timezone_offset=timezone_offset_minutes,
    )


def update_behavior_signature(
    current: BehaviorSignature,
    activity: UserActivity,
    now: datetime | None = None,
) -> BehaviorSignature:
    """Fold one activity into the rolling windows. Returns a new signature."""
    moment = activity.occurred_at or now or datetime.now(timezone.utc)
    hour = moment.astimezone(timezone.utc).hour
    kind = UserAction(activity.kind)

    activity_hours = current.activity_hours
    if hour not in activity_hours:
        activity_hours = (activity_hours + (hour,))[-ACTIVITY_HOURS_WINDOW:]

    preferred = current.preferred_post_types
    if (
        kind == UserAction.POST
        and activity.post_type
        and activity.post_type not in preferred
    ):
        preferred = (preferred + (activity.post_type,))[-PREFERRED_POST_TYPES_WINDOW:]

    patterns = (current.interaction_patterns + (kind.value,))[-INTERACTION_PATTERNS_WINDOW:]

    return replace(
        current,
        activity_hours=activity_hours,
        preferred_post_types=preferred,
        interaction_patterns=patterns,
    )

"""Audit Log — immutable moderation records, filtering, summary statistics and flat export.

Invariants:
    - All functions are PURE: no IO, no async, no DB
    - Every entry has a non-empty reason; entries are never updated or deleted
    - Server timestamp and action description always overwrite caller metadata
    - Export column order is fixed: ID, Timestamp, Moderator ID, Action,
      Target User Hash, Target Content ID, Reason, Metadata
    - Filters are conjunctive; date bounds are inclusive

Design Decisions:
    - csv module for export: RFC-4180 quoting (doubled quotes) without hand-rolled escaping
    - Summary returns a flat JSON-ready dict, like the other stats helpers
    - AuditFilters validates itself on construction: a malformed filter never reaches a query
"""

import csv
import io
import json
import uuid
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any

from tribunal.core.domain_types import (
    ActionId, ContentId, ModActionType, ModeratorId, UserHash,
    MAX_PUNISHMENT_LEVEL,
)
from tribunal.core.errors import EmptyReasonError, InvalidAuditFilterError
from tribunal.core.records import AuditMetadata, ModAction

A = ModActionType

ACTION_DESCRIPTIONS = MappingProxyType({
    A.SHADOW_BAN: "Applied shadow-ban (Level 1)",
    A.COOLDOWN: "Applied cooldown (Level 2)",
    A.CONTENT_LOCK: "Applied content lock (Level 3)",
    A.TERRITORY_MUTE: "Applied territory mute (Level 4)",
    A.REGIONAL_MUTE: "Applied regional mute (Level 5)",
    A.PERMANENT_BAN: "Applied permanent ban (Level 6)",
    A.UNBAN: "Removed punishment",
    A.CONTENT_REMOVE: "Removed content",
    A.CONTENT_RESTORE: "Restored content",
    A.USER_WARN: "Issued warning",
    A.APPOINT_MOD: "Appointed moderator",
    A.REMOVE_MOD: "Removed moderator",
})

ACTION_SEVERITY = MappingProxyType({
    A.SHADOW_BAN: 1,
    A.COOLDOWN: 2,
    A.CONTENT_LOCK: 3,
    A.TERRITORY_MUTE: 4,
    A.REGIONAL_MUTE: 5,
    A.PERMANENT_BAN: 6,
    A.UNBAN: 0,
    A.CONTENT_REMOVE: 3,
    A.CONTENT_RESTORE: 0,
    A.USER_WARN: 1,
    A.APPOINT_MOD: 0,
    A.REMOVE_MOD: 0,
})

EXPORT_COLUMNS = (
    "ID",
    "Timestamp",
    "Moderator ID",
    "Action",
    "Target User Hash",
    "Target Content ID",
    "Reason",
    "Metadata",
)


# ─── Entry Creation ──────────────────────────────────────────────

def create_audit_entry(
    moderator_id: ModeratorId,
    action_type: ModActionType,
    *,
    reason: str,
    target_user_hash: UserHash | None = None,
    target_content_id: ContentId | None = None,
    metadata: AuditMetadata | Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> ModAction:
    """Build (not persist) an audit entry. Raises EmptyReasonError for a blank reason."""
    if not reason or not reason.strip():
        raise EmptyReasonError()
    action_type = ModActionType(action_type)
    now = now or datetime.now(timezone.utc)

    if metadata is None:
        base = AuditMetadata()
    elif isinstance(metadata, AuditMetadata):
        base = metadata
    else:
        base = AuditMetadata.from_dict(dict(metadata))

    merged = replace(
        base,
        timestamp=now.isoformat(),
        action_description=ACTION_DESCRIPTIONS[action_type],
    )
    return ModAction(
        id=ActionId(uuid.uuid4()),
        moderator_id=moderator_id,
        action_type=action_type,
        target_user_hash=target_user_hash or None,
        target_content_id=target_content_id or None,
        reason=reason.strip(),
        metadata=merged,
        created_at=now,
    )


def get_action_severity(action_type: ModActionType) -> int:
    return ACTION_SEVERITY[ModActionType(action_type)]


# ─── Filtering ───────────────────────────────────────────────────

@dataclass(frozen=True)
class AuditFilters:
    """Optional, conjunctive audit filters."""
    moderator_id: ModeratorId | None = None
    action_type: ModActionType | None = None
    target_user_hash: UserHash | None = None
    min_severity: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    def __post_init__(self):
        for name in ("start_date", "end_date"):
            value = getattr(self, name)
            if value is not None and value.tzinfo is None:
                raise InvalidAuditFilterError(
                    f"{name} must be timezone-aware", name,
                )
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        ):
            raise InvalidAuditFilterError(
                "start_date must not be after end_date", "start_date",
            )
        if self.min_severity is not None and not (
            0 <= self.min_severity <= MAX_PUNISHMENT_LEVEL
        ):
            raise InvalidAuditFilterError(
                f"min_severity must be between 0 and {MAX_PUNISHMENT_LEVEL}",
                "min_severity",
            )

    def matches(self, action: ModAction) -> bool:
        if self.moderator_id is not None and action.moderator_id != self.moderator_id:
            return False
        if self.action_type is not None and action.action_type != self.action_type:
            return False
        if (
            self.target_user_hash is not None
            and action.target_user_hash != self.target_user_hash
        ):
            return False
        if (
            self.min_severity is not None
            and get_action_severity(action.action_type) < self.min_severity
        ):
            return False
        if self.start_date is not None and action.created_at < self.start_date:
            return False
        if self.end_date is not None and action.created_at > self.end_date:
            return False
        return True


def filter_audit_logs(
    actions: Iterable[ModAction], filters: AuditFilters,
) -> list[ModAction]:
    return [a for a in actions if filters.matches(a)]


# ─── Export ──────────────────────────────────────────────────────

def format_audit_log(actions: Iterable[ModAction]) -> str:
    """Flat CSV export. Header row first; one row per action."""
    buffer = io.StringIO()
    writer = csv.writer(
        buffer, delimiter=",", quotechar='"',
        quoting=csv.QUOTE_MINIMAL, lineterminator="\n",
    )
    writer.writerow(EXPORT_COLUMNS)
    for action in actions:
        writer.writerow([
            str(action.id),
            action.created_at.isoformat(),
            str(action.moderator_id),
            action.action_type.value,
            action.target_user_hash or "",
            action.target_content_id or "",
            action.reason,
            json.dumps(action.metadata.to_dict(), sort_keys=True, ensure_ascii=False),
        ])
    return buffer.getvalue()


# ─── Summary ─────────────────────────────────────────────────────

def generate_audit_summary(actions: Iterable[ModAction]) -> dict:
    """Counts by type and moderator, mean severity, and created_at range."""
    actions = list(actions)
    if not actions:
        return {
            "total_actions": 0,
            "by_type": {},
            "by_moderator": {},
            "average_severity": 0,
            "date_range": None,
        }

    by_type = Counter(a.action_type.value for a in actions)
    by_moderator = Counter(str(a.moderator_id) for a in actions)
    total_severity = sum(get_action_severity(a.action_type) for a in actions)
    dates = [a.created_at for a in actions]

    return {
        "total_actions": len(actions),
        "by_type": dict(by_type),
        "by_moderator": dict(by_moderator),
        "average_severity": total_severity / len(actions),
        "date_range": {
            "start": min(dates).isoformat(),
            "end": max(dates).isoformat(),
        },
    }

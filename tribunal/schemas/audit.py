"""Audit Schemas — query parameters for audit listing, summary and export.

Invariants:
    - Dates must carry a timezone; naive values are rejected as INVALID_AUDIT_FILTER
    - min_severity, when given, is 0-6

Design Decisions:
    - Conversion to core AuditFilters happens here so the route never builds filters by hand
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from tribunal.core.audit_log import AuditFilters
from tribunal.core.domain_types import ModActionType


class AuditQuery(BaseModel):
    moderator_id: UUID | None = None
    action_type: ModActionType | None = None
    target_user_hash: str | None = None
    min_severity: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    def to_filters(self) -> AuditFilters:
        """Raises InvalidAuditFilterError (400) for naive or inverted dates."""
        return AuditFilters(
            moderator_id=self.moderator_id,
            action_type=self.action_type,
            target_user_hash=self.target_user_hash,
            min_severity=self.min_severity,
            start_date=self.start_date,
            end_date=self.end_date,
        )


class AuditSummaryResponse(BaseModel):
    total_actions: int
    by_type: dict[str, int]
    by_moderator: dict[str, int]
    average_severity: float
    date_range: dict[str, str] | None

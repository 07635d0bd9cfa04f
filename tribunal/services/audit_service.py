"""Audit Service — read side of the moderation audit trail.

Invariants:
    - Read-only: never appends, updates or deletes audit rows
    - Access gated on role permissions (access_all_logs / audit_territories to read,
      export_all_data / audit_territories to export)

Design Decisions:
    - Filtering pushed into SQL; core filter_audit_logs re-applies the same predicate
      so both paths agree on inclusive date bounds
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from tribunal.core.audit_log import (
    AuditFilters, filter_audit_logs, format_audit_log, generate_audit_summary,
)
from tribunal.core.records import ALLOWED, AuthorizationDecision, ModAction, Moderator
from tribunal.core.repository_protocols import AuditRepository
from tribunal.core.role_authority import (
    ROLE_DISPLAY, can_export_audit_log, can_read_audit_log,
)
from tribunal.infrastructure.repositories import SqlAuditRepository

logger = logging.getLogger(__name__)


class AuditService:
    def __init__(self, db: AsyncSession):
        self.audit: AuditRepository = SqlAuditRepository(db)

    def authorize_read(self, actor: Moderator) -> AuthorizationDecision:
        if can_read_audit_log(actor.role):
            return ALLOWED
        return AuthorizationDecision(
            allowed=False,
            reason=f"{ROLE_DISPLAY[actor.role][0]} cannot read the audit log.",
        )

    def authorize_export(self, actor: Moderator) -> AuthorizationDecision:
        if can_export_audit_log(actor.role):
            return ALLOWED
        return AuthorizationDecision(
            allowed=False,
            reason=f"{ROLE_DISPLAY[actor.role][0]} cannot export the audit log.",
        )

    async def list_entries(self, filters: AuditFilters) -> list[ModAction]:
        return filter_audit_logs(await self.audit.query(filters), filters)

    async def export(self, filters: AuditFilters) -> str:
        entries = await self.list_entries(filters)
        logger.info(f"Exporting {len(entries)} audit entries")
        return format_audit_log(entries)

    async def summarize(self, filters: AuditFilters) -> dict:
        return generate_audit_summary(await self.list_entries(filters))

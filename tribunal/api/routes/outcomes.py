"""Outcome Rendering — shared translation of service outcomes to HTTP responses.

Invariants:
    - allowed outcomes keep the route's success status; denied outcomes are 403
    - The body always carries allowed, reason and the audit entry written
"""

from fastapi import status
from fastapi.responses import JSONResponse

from tribunal.schemas.moderation import (
    AuditEntryResponse, ModerationOutcomeResponse, ModeratorResponse, PunishmentResponse,
)
from tribunal.services.appointment_service import AppointmentOutcome
from tribunal.services.moderation_service import ModerationOutcome


def render_outcome(
    outcome: ModerationOutcome | AppointmentOutcome,
    success_status: int = status.HTTP_200_OK,
) -> JSONResponse:
    body = ModerationOutcomeResponse(
        allowed=outcome.decision.allowed,
        reason=outcome.decision.reason,
        audit_entry=AuditEntryResponse.from_record(outcome.audit_entry),
    )
    if isinstance(outcome, ModerationOutcome):
        if outcome.punishment is not None:
            body.punishment = PunishmentResponse.from_record(outcome.punishment)
        body.lifted = [PunishmentResponse.from_record(p) for p in outcome.lifted]
    elif outcome.moderator is not None:
        body.moderator = ModeratorResponse.from_record(outcome.moderator)

    return JSONResponse(
        status_code=(
            success_status if outcome.decision.allowed
            else status.HTTP_403_FORBIDDEN
        ),
        content=body.model_dump(mode="json"),
    )

"""Moderator Routes — list, appoint and remove moderator offices.

Invariants:
    - Every route requires a seated moderator (X-Moderator-Id)
    - Appointment of a role outside the caller's tree is a 400 before any write
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tribunal.api.dependencies import get_current_moderator
from tribunal.api.routes.outcomes import render_outcome
from tribunal.core.records import Moderator
from tribunal.core.role_authority import (
    get_appointable_roles, get_role_display, get_role_permissions,
)
from tribunal.infrastructure.database import get_db
from tribunal.schemas.moderation import (
    AppointRequest, ModeratorResponse, RemoveModeratorRequest,
)
from tribunal.services.appointment_service import AppointmentService

router = APIRouter(prefix="/api/v1/moderators", tags=["moderators"])


@router.get("", response_model=list[ModeratorResponse])
async def list_moderators(
    actor: Moderator = Depends(get_current_moderator),
    db: AsyncSession = Depends(get_db),
):
    moderators = await AppointmentService(db).list_moderators()
    return [ModeratorResponse.from_record(m) for m in moderators]


@router.get("/me")
async def describe_self(actor: Moderator = Depends(get_current_moderator)):
    """The caller's office: display, permissions and appointable roles."""
    return {
        "moderator": ModeratorResponse.from_record(actor).model_dump(mode="json"),
        "display": get_role_display(actor.role),
        "permissions": sorted(get_role_permissions(actor.role)),
        "appointable_roles": sorted(r.value for r in get_appointable_roles(actor.role)),
    }


@router.post("")
async def appoint_moderator(
    body: AppointRequest,
    actor: Moderator = Depends(get_current_moderator),
    db: AsyncSession = Depends(get_db),
):
    outcome = await AppointmentService(db).appoint(
        actor, body.user_hash, body.role, body.scope_type, body.scope_id, body.reason,
    )
    return render_outcome(outcome, status.HTTP_201_CREATED)


@router.delete("/{moderator_id}")
async def remove_moderator(
    moderator_id: UUID,
    body: RemoveModeratorRequest,
    actor: Moderator = Depends(get_current_moderator),
    db: AsyncSession = Depends(get_db),
):
    outcome = await AppointmentService(db).remove(actor, moderator_id, body.reason)
    return render_outcome(outcome)

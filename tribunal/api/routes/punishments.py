"""Punishment Routes — impose, lift and query sanctions.

Invariants:
    - impose/lift require a seated moderator; denied requests are 403 with the audit entry
    - check-action and visibility answer from active punishments only and never write

Design Decisions:
    - Durations read from settings per request so overrides in tests take effect
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tribunal.api.dependencies import get_current_moderator
from tribunal.api.routes.outcomes import render_outcome
from tribunal.config import get_settings
from tribunal.core.punishment_ladder import get_punishment_display
from tribunal.core.records import Moderator
from tribunal.infrastructure.database import get_db
from tribunal.schemas.moderation import (
    ActionCheckRequest, ActionDecisionResponse, ImposePunishmentRequest,
    LiftPunishmentRequest, PunishmentResponse, VisibilityCheckRequest,
)
from tribunal.services.moderation_service import ModerationService

router = APIRouter(prefix="/api/v1/punishments", tags=["punishments"])


def _service(db: AsyncSession) -> ModerationService:
    return ModerationService(db, get_settings().punishment_duration_hours)


@router.post("")
async def impose_punishment(
    body: ImposePunishmentRequest,
    actor: Moderator = Depends(get_current_moderator),
    db: AsyncSession = Depends(get_db),
):
    outcome = await _service(db).impose_punishment(
        actor, body.user_hash, body.scope_type, body.scope_id, body.reason,
        level=body.level, action_type=body.action_type,
    )
    return render_outcome(outcome, status.HTTP_201_CREATED)


@router.post("/lift")
async def lift_punishment(
    body: LiftPunishmentRequest,
    actor: Moderator = Depends(get_current_moderator),
    db: AsyncSession = Depends(get_db),
):
    outcome = await _service(db).lift_punishment(
        actor, body.user_hash, body.scope_type, body.scope_id, body.reason,
    )
    return render_outcome(outcome)


@router.get("/{user_hash}/effective")
async def effective_punishment(
    user_hash: str,
    territory_id: str | None = Query(None),
    dominion_id: str | None = Query(None),
    actor: Moderator = Depends(get_current_moderator),
    db: AsyncSession = Depends(get_db),
):
    """Moderator view of the user's most severe applicable punishment."""
    effective = await _service(db).get_effective_punishment(
        user_hash, territory_id, dominion_id,
    )
    if effective is None:
        return {"punished": False, "punishment": None, "display": None}
    return {
        "punished": True,
        "punishment": PunishmentResponse.from_record(effective).model_dump(mode="json"),
        "display": get_punishment_display(effective.punishment_level),
    }


@router.post("/check-action", response_model=ActionDecisionResponse)
async def check_action(body: ActionCheckRequest, db: AsyncSession = Depends(get_db)):
    decision = await _service(db).check_user_action(
        body.user_hash, body.action, body.territory_id, body.dominion_id,
    )
    return ActionDecisionResponse.from_decision(decision)


@router.post("/visibility")
async def check_visibility(
    body: VisibilityCheckRequest, db: AsyncSession = Depends(get_db),
):
    visible = await _service(db).check_content_visibility(
        body.viewer_hash, body.author_hash, body.territory_id, body.dominion_id,
    )
    return {"visible": visible}

"""Content Moderation Routes — content removal, restoration and warnings.

Invariants:
    - Only content_remove, content_restore and user_warn are accepted here
    - The feed service applies the content change; this route authorizes and audits it
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tribunal.api.dependencies import get_current_moderator
from tribunal.api.routes.outcomes import render_outcome
from tribunal.core.records import Moderator
from tribunal.infrastructure.database import get_db
from tribunal.schemas.moderation import ContentActionRequest
from tribunal.services.moderation_service import ModerationService

router = APIRouter(prefix="/api/v1/moderation", tags=["moderation"])


@router.post("/content-actions")
async def record_content_action(
    body: ContentActionRequest,
    actor: Moderator = Depends(get_current_moderator),
    db: AsyncSession = Depends(get_db),
):
    outcome = await ModerationService(db).record_content_action(
        actor, body.action_type, body.reason, body.scope_type, body.scope_id,
        target_user_hash=body.target_user_hash,
        target_content_id=body.target_content_id,
    )
    return render_outcome(outcome, status.HTTP_201_CREATED)

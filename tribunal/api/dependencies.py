"""API Dependencies — resolves the acting moderator from the request.

Invariants:
    - Callers identify with the X-Moderator-Id header; the id must name a seated moderator
    - Missing, malformed or unknown ids raise AuthenticationError (401)

Design Decisions:
    - Authentication itself happens upstream at the gateway; this layer only maps the
      forwarded identity to an office (ADR: moderators trusted as already authenticated)
"""

from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from tribunal.core.domain_types import ModeratorId
from tribunal.core.errors import AuthenticationError
from tribunal.core.records import Moderator
from tribunal.infrastructure.database import get_db
from tribunal.infrastructure.repositories import SqlModeratorRepository


async def get_current_moderator(
    x_moderator_id: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Moderator:
    if not x_moderator_id:
        raise AuthenticationError("X-Moderator-Id header is required")
    try:
        moderator_id = ModeratorId(UUID(x_moderator_id))
    except ValueError:
        raise AuthenticationError("X-Moderator-Id is not a valid moderator id")

    moderator = await SqlModeratorRepository(db).get(moderator_id)
    if moderator is None:
        raise AuthenticationError("Caller does not hold a moderator office")
    return moderator

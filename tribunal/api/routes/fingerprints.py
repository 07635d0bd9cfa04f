"""Fingerprint Routes — pseudonymous identity registration and activity capture.

Invariants:
    - Responses carry the derived hashes and summaries, never the email or account id
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tribunal.config import get_settings
from tribunal.core.fingerprint import UserActivity
from tribunal.infrastructure.database import get_db
from tribunal.schemas.fingerprint import (
    ActivityRequest, FingerprintResponse, RegisterRequest,
)
from tribunal.services.fingerprint_service import FingerprintService

router = APIRouter(prefix="/api/v1/fingerprints", tags=["fingerprints"])


def _service(db: AsyncSession) -> FingerprintService:
    return FingerprintService(db, get_settings().identity_salt)


@router.post("", response_model=FingerprintResponse)
async def register_identity(
    body: RegisterRequest, db: AsyncSession = Depends(get_db),
):
    registration = await _service(db).register(
        body.email,
        body.account_id,
        body.device.to_device() if body.device else None,
        body.timezone_offset_minutes,
    )
    response = FingerprintResponse.from_parts(
        registration.user_hash,
        registration.signature,
        registration.time_pattern,
        registration.device_hash,
    )
    return JSONResponse(
        status_code=(
            status.HTTP_201_CREATED if registration.created else status.HTTP_200_OK
        ),
        content=response.model_dump(mode="json"),
    )


@router.post("/{user_hash}/activity", response_model=FingerprintResponse)
async def record_activity(
    user_hash: str,
    body: ActivityRequest,
    db: AsyncSession = Depends(get_db),
):
    signature, time_pattern = await _service(db).record_activity(
        user_hash,
        UserActivity(kind=body.kind, post_type=body.post_type, occurred_at=body.occurred_at),
    )
    return FingerprintResponse.from_parts(user_hash, signature, time_pattern)

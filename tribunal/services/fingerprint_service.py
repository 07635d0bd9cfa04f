"""Fingerprint Service — registers pseudonymous identities and folds in activity.

Invariants:
    - Email and account id are consumed to derive the UserHash and never persisted
    - Re-registering an existing user keeps the stored behavior summaries
    - record_activity on an unknown user_hash is a 404, never an implicit registration

Design Decisions:
    - Salt comes from settings.identity_salt; rotating it re-keys every identity
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from tribunal.core.domain_types import DeviceHash, UserHash
from tribunal.core.errors import ResourceNotFoundError
from tribunal.core.fingerprint import (
    BehaviorSignature, DeviceFingerprint, TimePattern, UserActivity,
    generate_user_hash, hash_device, init_behavior_signature, init_time_pattern,
    update_behavior_signature,
)
from tribunal.core.repository_protocols import FingerprintRepository
from tribunal.infrastructure.repositories import SqlFingerprintRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registration:
    user_hash: UserHash
    device_hash: DeviceHash | None
    signature: BehaviorSignature
    time_pattern: TimePattern
    created: bool


class FingerprintService:
    def __init__(self, db: AsyncSession, salt: str):
        self.db = db
        self.salt = salt
        self.fingerprints: FingerprintRepository = SqlFingerprintRepository(db)

    async def register(
        self,
        email: str,
        account_id: str,
        device: DeviceFingerprint | None = None,
        timezone_offset_minutes: int = 0,
    ) -> Registration:
        user_hash = generate_user_hash(email, account_id, self.salt)
        device_hash = hash_device(device, self.salt) if device is not None else None

        existing = await self.fingerprints.get(user_hash)
        if existing is None:
            signature = init_behavior_signature()
            time_pattern = init_time_pattern(
                timezone_offset_minutes=timezone_offset_minutes,
            )
        else:
            signature, time_pattern = existing

        await self.fingerprints.save(user_hash, device_hash, signature, time_pattern)
        await self.db.commit()
        logger.info(
            "Identity registered" if existing is None else "Identity refreshed",
            extra={"user_hash": user_hash},
        )
        return Registration(
            user_hash, device_hash, signature, time_pattern, created=existing is None,
        )

    async def record_activity(
        self, user_hash: UserHash, activity: UserActivity,
    ) -> tuple[BehaviorSignature, TimePattern]:
        existing = await self.fingerprints.get(user_hash)
        if existing is None:
            raise ResourceNotFoundError("Fingerprint", user_hash)
        signature, time_pattern = existing

        now = datetime.now(timezone.utc)
        signature = update_behavior_signature(signature, activity, now)
        time_pattern = replace(
            time_pattern,
            last_active=(activity.occurred_at or now).isoformat(),
            typical_active_hours=signature.activity_hours,
        )
        await self.fingerprints.save(user_hash, None, signature, time_pattern)
        await self.db.commit()
        return signature, time_pattern

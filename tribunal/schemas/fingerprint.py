"""Fingerprint Schemas — registration and activity payloads.

Invariants:
    - email and account_id are request-only; no response model carries them
    - timezone_offset_minutes within +/- 14 hours

Design Decisions:
    - Device descriptor optional: server-side registrations have no browser to describe
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from tribunal.core.domain_types import UserAction
from tribunal.core.fingerprint import BehaviorSignature, DeviceFingerprint, TimePattern


class DevicePayload(BaseModel):
    user_agent: str = Field("server", max_length=512)
    language: str = Field("en", max_length=35)
    timezone: str = Field("UTC", max_length=64)
    screen_resolution: str = Field("0x0", max_length=20)
    platform: str = Field("server", max_length=64)

    def to_device(self) -> DeviceFingerprint:
        return DeviceFingerprint(**self.model_dump())


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    account_id: str = Field(min_length=1, max_length=128)
    device: DevicePayload | None = None
    timezone_offset_minutes: int = Field(0, ge=-840, le=840)

    @field_validator("email")
    @classmethod
    def require_at_sign(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class ActivityRequest(BaseModel):
    kind: UserAction
    post_type: str | None = Field(None, max_length=40)
    occurred_at: datetime | None = None


class FingerprintResponse(BaseModel):
    user_hash: str
    device_hash: str | None = None
    behavior_signature: dict
    time_pattern: dict

    @classmethod
    def from_parts(
        cls,
        user_hash: str,
        signature: BehaviorSignature,
        time_pattern: TimePattern,
        device_hash: str | None = None,
    ) -> "FingerprintResponse":
        return cls(
            user_hash=user_hash,
            device_hash=device_hash,
            behavior_signature=signature.to_dict(),
            time_pattern=time_pattern.to_dict(),
        )

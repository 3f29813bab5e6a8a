"""
OTP schemas for request validation and response serialization.

- Issuing a code for a phone and purpose
- Verifying a submitted code
- Revoking outstanding codes
"""

import re
from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.config import settings
from app.core.enums import OTPPurpose

# Optional leading "+" followed by 8-15 digits, after stripping separators
PHONE_PATTERN = re.compile(r"^\+?\d{8,15}$")


def normalize_phone(value: str) -> str:
    """
    Strip spaces and dashes from a phone number and validate its shape.

    Raises:
        ValueError: If the result is not 8-15 digits with an optional leading "+".

    Examples:
        >>> normalize_phone("+62 812-3456-7890")
        '+6281234567890'
    """
    phone = re.sub(r"[\s-]", "", value)
    if not PHONE_PATTERN.match(phone):
        raise ValueError(
            "Phone must contain 8-15 digits with an optional leading '+'"
        )
    return phone


class _PhonePurposeRequest(BaseModel):
    phone: Annotated[str, Field(description="Destination phone number")]
    purpose: Annotated[OTPPurpose, Field(description="What the code authorises")]

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return normalize_phone(v)


class OTPSendRequest(_PhonePurposeRequest):
    """Request schema for issuing an OTP."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"phone": "+6281234567890", "purpose": "verify_phone"}
        }
    )

    user_id: Annotated[
        UUID | None,
        Field(description="Account the code is issued for, if known"),
    ] = None


class OTPSendResponse(BaseModel):
    """Response schema for an issued OTP."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "OTP sent",
                "expires_at": "2026-01-01T12:05:00Z",
            }
        }
    )

    message: str = "OTP sent"
    expires_at: datetime
    code: Annotated[
        str | None,
        Field(description="Plaintext code, only returned when OTP_EXPOSE_CODE is on"),
    ] = None


class OTPVerifyRequest(_PhonePurposeRequest):
    """Request schema for OTP verification."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "phone": "+6281234567890",
                "purpose": "verify_phone",
                "code": "123456",
            }
        }
    )

    code: Annotated[str, Field(description="Numeric verification code")]

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        """Require exactly OTP_LENGTH digits."""
        v = v.strip()
        if len(v) != settings.OTP_LENGTH or not v.isdigit():
            raise ValueError(f"Code must be exactly {settings.OTP_LENGTH} digits")
        return v


class OTPVerifyResponse(BaseModel):
    """Response schema for a successful verification."""

    model_config = ConfigDict(json_schema_extra={"example": {"valid": True}})

    valid: bool = True


class OTPRevokeRequest(_PhonePurposeRequest):
    """Request schema for revoking outstanding OTPs."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"phone": "+6281234567890", "purpose": "login"}}
    )


class OTPRevokeResponse(BaseModel):
    """Response schema for a revocation."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"message": "OTP revoked", "revoked": 1}}
    )

    message: str = "OTP revoked"
    revoked: int


__all__ = [
    "normalize_phone",
    "OTPSendRequest",
    "OTPSendResponse",
    "OTPVerifyRequest",
    "OTPVerifyResponse",
    "OTPRevokeRequest",
    "OTPRevokeResponse",
]

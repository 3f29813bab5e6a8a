"""
Shared schemas for API request validation and response serialization.

"""

from app.core.schemas.otp import (
    OTPRevokeRequest,
    OTPRevokeResponse,
    OTPSendRequest,
    OTPSendResponse,
    OTPVerifyRequest,
    OTPVerifyResponse,
    normalize_phone,
)

__all__ = [
    "OTPSendRequest",
    "OTPSendResponse",
    "OTPVerifyRequest",
    "OTPVerifyResponse",
    "OTPRevokeRequest",
    "OTPRevokeResponse",
    "normalize_phone",
]

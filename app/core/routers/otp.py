"""
OTP router.

Endpoints for issuing, verifying and revoking phone one-time codes.
Lifecycle failures are raised as OTPException subclasses and translated
to JSON responses by the application's exception handlers.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import request_logger, messaging_logger, settings
from app.core.dependencies import get_async_session
from app.core.schemas.otp import (
    OTPRevokeRequest,
    OTPRevokeResponse,
    OTPSendRequest,
    OTPSendResponse,
    OTPVerifyRequest,
    OTPVerifyResponse,
)
from app.core.services import OTPIssueResult, OTPService, get_publisher, has_publisher
from app.core.utils import mask_phone

router = APIRouter()


async def _hand_off_delivery(data: OTPSendRequest, result: OTPIssueResult) -> None:
    """Queue the issued code for the SMS worker. Failures are logged only."""
    if not has_publisher():
        messaging_logger.info(
            f"No publisher registered, skipping delivery for {mask_phone(data.phone)}"
        )
        return

    try:
        await get_publisher()(
            settings.OTP_DELIVERY_QUEUE,
            {
                "phone": data.phone,
                "purpose": data.purpose.value,
                "code": result.code,
                "expires_at": result.expires_at.isoformat(),
            },
            {"record_id": str(result.record_id)},
        )
        messaging_logger.info(
            f"OTP delivery queued: record={result.record_id}, "
            f"queue={settings.OTP_DELIVERY_QUEUE}"
        )
    except Exception as e:
        messaging_logger.error(
            f"Failed to queue OTP delivery for record={result.record_id}: {e}"
        )


@router.post(
    "/send",
    response_model=OTPSendResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue an OTP",
    description="""
## Issue OTP

Generate a new numeric code for a phone number and purpose, store its hash,
and queue it for SMS delivery.

### Request Body

| Field | Type | Required | Description |
|-------|------|----------|-------------|
| `phone` | string | Yes | 8-15 digits, optional leading `+` |
| `purpose` | string | Yes | `register`, `login`, `reset` or `verify_phone` |
| `user_id` | UUID | No | Account the code is issued for |

### Resend Cooldown

A new code for the same phone and purpose is refused until the cooldown
since the previous active code has elapsed. The response carries a
`Retry-After` header with the remaining seconds.

### Notes

- Issuing a new code does not revoke the previous one; only the newest
  active code can be verified.
- `code` is only echoed back when `OTP_EXPOSE_CODE` is enabled.
""",
    responses={
        429: {
            "description": "Resend cooldown active",
            "content": {
                "application/json": {
                    "example": {
                        "detail": "Please wait 42s before requesting another OTP.",
                        "remaining_seconds": 42,
                    }
                }
            },
        },
    },
)
async def send_otp(
    data: OTPSendRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> OTPSendResponse:
    """Issue an OTP and hand it off for delivery."""
    request_logger.info(
        f"POST /otp/send - phone={mask_phone(data.phone)}, purpose={data.purpose.value}"
    )

    result = await OTPService.issue(
        session,
        phone=data.phone,
        purpose=data.purpose,
        user_id=data.user_id,
    )

    await _hand_off_delivery(data, result)

    return OTPSendResponse(
        message=result.message,
        expires_at=result.expires_at,
        code=result.code if settings.OTP_EXPOSE_CODE else None,
    )


@router.post(
    "/verify",
    response_model=OTPVerifyResponse,
    status_code=status.HTTP_200_OK,
    summary="Verify an OTP",
    description="""
## Verify OTP

Check a code against the newest active OTP for a phone and purpose.
A successful verification consumes the code.

### Errors

| Status | Meaning |
|--------|---------|
| 404 | No active OTP for this phone and purpose |
| 400 | Code expired, or code did not match |
| 429 | Attempt limit reached; request a new OTP |
""",
    responses={
        400: {
            "description": "Invalid or expired code",
            "content": {
                "application/json": {"example": {"detail": "Invalid OTP code."}}
            },
        },
        404: {
            "description": "No active OTP",
            "content": {"application/json": {"example": {"detail": "OTP not found."}}},
        },
        429: {
            "description": "Attempt limit reached",
            "content": {
                "application/json": {
                    "example": {
                        "detail": "Max attempts exceeded. Please request a new OTP."
                    }
                }
            },
        },
    },
)
async def verify_otp(
    data: OTPVerifyRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> OTPVerifyResponse:
    """Verify and consume an OTP."""
    request_logger.info(
        f"POST /otp/verify - phone={mask_phone(data.phone)}, purpose={data.purpose.value}"
    )

    # Failure paths persist their state changes before raising
    result = await OTPService.verify(
        session,
        phone=data.phone,
        purpose=data.purpose,
        code=data.code,
    )

    return OTPVerifyResponse(valid=result.valid)


@router.post(
    "/revoke",
    response_model=OTPRevokeResponse,
    status_code=status.HTTP_200_OK,
    summary="Revoke outstanding OTPs",
    description="""
## Revoke OTPs

Invalidate every active OTP for a phone and purpose, for example when the
user changes their phone number. Revoking when nothing is active is a no-op.
""",
)
async def revoke_otp(
    data: OTPRevokeRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> OTPRevokeResponse:
    """Revoke active OTPs for a phone and purpose."""
    request_logger.info(
        f"POST /otp/revoke - phone={mask_phone(data.phone)}, purpose={data.purpose.value}"
    )

    revoked = await OTPService.revoke_active(
        session,
        phone=data.phone,
        purpose=data.purpose,
    )

    return OTPRevokeResponse(revoked=revoked)


__all__ = ["router"]

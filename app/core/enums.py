from enum import Enum


class OTPPurpose(str, Enum):
    """What an OTP code authorises. Codes are scoped per (phone, purpose)."""

    REGISTER = "register"
    LOGIN = "login"
    RESET = "reset"
    VERIFY_PHONE = "verify_phone"


class OTPStatus(str, Enum):
    """Lifecycle state of an OTP record.

    ACTIVE is the only non-terminal state; every other value means the
    record is used and can no longer be verified or updated.
    """

    ACTIVE = "active"
    CONSUMED = "consumed"  # Matched by a verify call
    EXPIRED = "expired"  # Expiry detected at verify time
    EXHAUSTED = "exhausted"  # Attempt ceiling reached
    REVOKED = "revoked"  # Bulk-revoked by an external flow


__all__ = [
    "OTPPurpose",
    "OTPStatus",
]

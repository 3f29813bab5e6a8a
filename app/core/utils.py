"""
Utility functions for the application.

- Numeric OTP code generation from a CSPRNG
- Salted OTP hashing and constant-time verification using bcrypt
- Masking helpers for phones and codes in log lines
"""

import math
import secrets

import bcrypt

from app.core.config import utils_logger

# bcrypt accepts cost factors in this range
MIN_HASH_ROUNDS = 4
MAX_HASH_ROUNDS = 31


def generate_numeric_code(length: int) -> str:
    """
    Generate a random numeric code of a fixed length.

    Each digit is drawn uniformly from 0-9, so leading zeros are allowed:
    the result is a string of digits, not a number.

    Args:
        length: Number of digits. Must be positive.

    Returns:
        str: The generated code.

    Raises:
        ValueError: If length is not positive.

    Examples:
        >>> code = generate_numeric_code(6)
        >>> len(code), code.isdigit()
        (6, True)
    """
    if length <= 0:
        raise ValueError("Code length must be positive")

    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def hash_otp(otp: str | None, rounds: int = 12) -> str:
    """
    Hash an OTP code with bcrypt and a fresh random salt.

    Salted hashes are not queryable, so records are looked up by phone and
    purpose first and then compared with verify_otp_hash().

    Args:
        otp: The plaintext code. Cannot be None or empty.
        rounds: bcrypt cost factor (4-31).

    Returns:
        str: The bcrypt hash (60 characters).

    Raises:
        ValueError: If otp is empty or rounds is out of range.

    Examples:
        >>> hashed = hash_otp("123456", rounds=4)
        >>> hashed.startswith("$2b$04$")
        True
    """
    if not otp:
        utils_logger.error("Attempted to hash None or empty OTP")
        raise ValueError("OTP cannot be None or empty")

    if not MIN_HASH_ROUNDS <= rounds <= MAX_HASH_ROUNDS:
        raise ValueError(
            f"Hash rounds must be between {MIN_HASH_ROUNDS} and {MAX_HASH_ROUNDS}"
        )

    hashed = bcrypt.hashpw(otp.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    utils_logger.debug(f"OTP {mask_otp(otp)} hashed with bcrypt (rounds={rounds})")
    return hashed.decode("utf-8")


def verify_otp_hash(otp: str | None, hashed_otp: str | None) -> bool:
    """
    Compare a plaintext OTP with its bcrypt hash in constant time.

    Args:
        otp: The plaintext code supplied by the user. Can be None.
        hashed_otp: The stored bcrypt hash. Can be None.

    Returns:
        bool: True on match. False on mismatch or for any invalid input,
              including a malformed hash.

    Examples:
        >>> hashed = hash_otp("123456", rounds=4)
        >>> verify_otp_hash("123456", hashed)
        True
        >>> verify_otp_hash("654321", hashed)
        False
    """
    if not otp or not hashed_otp:
        utils_logger.warning(
            "OTP verification attempted with invalid value(s): "
            f"otp={'None/empty' if not otp else 'provided'}, "
            f"hashed_otp={'None/empty' if not hashed_otp else 'provided'}"
        )
        return False

    try:
        return bcrypt.checkpw(otp.encode("utf-8"), hashed_otp.encode("utf-8"))
    except ValueError:
        utils_logger.warning("OTP verification failed: invalid hash format")
        return False


def mask_otp(otp: str) -> str:
    """
    Mask an OTP code for logging purposes, showing only first and last digit.

    Examples:
        >>> mask_otp("123456")
        '1****6'
        >>> mask_otp("12")
        '12'
    """
    if len(otp) <= 2:
        return otp

    return f"{otp[0]}{'*' * (len(otp) - 2)}{otp[-1]}"


def mask_phone(phone: str) -> str:
    """
    Mask a phone number for logging, keeping the last four digits.

    Examples:
        >>> mask_phone("+6281234567890")
        '**********7890'
        >>> mask_phone("1234")
        '1234'
    """
    if len(phone) <= 4:
        return phone

    return f"{'*' * (len(phone) - 4)}{phone[-4:]}"


def seconds_remaining(total_seconds: float, elapsed_seconds: float) -> int:
    """
    Whole seconds left in a window, rounded up so a caller never retries early.

    Examples:
        >>> seconds_remaining(60, 10.2)
        50
        >>> seconds_remaining(60, 0)
        60
    """
    return max(0, math.ceil(total_seconds - elapsed_seconds))


__all__ = [
    "generate_numeric_code",
    "hash_otp",
    "verify_otp_hash",
    "mask_otp",
    "mask_phone",
    "seconds_remaining",
]

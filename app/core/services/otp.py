"""
OTP lifecycle service for phone one-time codes.

This module owns issuance, verification, expiry and revocation of OTP
codes used for registration, login step-up, password reset and phone
verification. Delivery of the code to the handset is the caller's job:
issue() returns the plaintext code once and never stores it.

Example usage:
    from app.core.services.otp import OTPService

    OTPService.init()

    result = await OTPService.issue(
        session=db_session,
        phone="+6281234567890",
        purpose=OTPPurpose.VERIFY_PHONE,
    )
    # hand result.code to the SMS gateway

    await OTPService.verify(
        session=db_session,
        phone="+6281234567890",
        purpose=OTPPurpose.VERIFY_PHONE,
        code="123456",
    )
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import otp_logger, settings
from app.core.db.crud import otp_record_db
from app.core.enums import OTPPurpose, OTPStatus
from app.core.exceptions.types import (
    OTPAttemptsExceededException,
    OTPCooldownActiveException,
    OTPExpiredException,
    OTPInvalidException,
    OTPNotFoundException,
)
from app.core.services.base import SingletonService
from app.core.services.clock import Clock, SystemClock
from app.core.utils import (
    generate_numeric_code,
    hash_otp,
    mask_phone,
    seconds_remaining,
    verify_otp_hash,
)


__all__ = ["OTPService", "OTPIssueResult", "OTPVerifyResult"]


@dataclass
class OTPIssueResult:
    """
    Delivery acknowledgment returned by OTPService.issue().

    Attributes:
        message: Human-readable acknowledgment.
        expires_at: When the issued code stops being accepted.
        code: The plaintext code, for the delivery hand-off only.
        record_id: ID of the persisted record.
    """

    message: str
    expires_at: datetime
    code: str
    record_id: UUID


@dataclass
class OTPVerifyResult:
    valid: bool
    record_id: UUID
    user_id: UUID | None = None


class OTPService(SingletonService):
    """
    OTP lifecycle manager.

    Each (phone, purpose) pair has at most one authoritative code: the
    newest ACTIVE record. A record leaves ACTIVE exactly once, as CONSUMED,
    EXPIRED, EXHAUSTED or REVOKED.

    The attempt ceiling is checked before comparing the code, so a record
    with max_attempts=3 answers three wrong codes with OTPInvalidException
    and rejects the fourth call with OTPAttemptsExceededException, even if
    that code is correct.

    Every state change is a guarded single-row UPDATE and is persisted
    before the corresponding exception is raised.
    """

    _ttl_seconds: int = settings.OTP_TTL_SECONDS
    _resend_cooldown_seconds: int = settings.OTP_RESEND_COOLDOWN_SECONDS
    _max_attempts: int = settings.OTP_MAX_ATTEMPTS
    _code_length: int = settings.OTP_LENGTH
    _hash_rounds: int = settings.OTP_HASH_ROUNDS
    _clock: Clock = SystemClock()

    # =========================================================================
    # Initialization
    # =========================================================================

    @classmethod
    def init(
        cls,
        ttl_seconds: int | None = None,
        resend_cooldown_seconds: int | None = None,
        max_attempts: int | None = None,
        code_length: int | None = None,
        hash_rounds: int | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Configure the service. Unset arguments fall back to settings.

        Args:
            ttl_seconds: Lifetime of an issued code.
            resend_cooldown_seconds: Minimum gap between issuances per (phone, purpose).
            max_attempts: Wrong attempts allowed before lockout.
            code_length: Number of digits per code.
            hash_rounds: bcrypt cost factor.
            clock: Time source. Defaults to SystemClock.

        Raises:
            ValueError: If any numeric setting is out of range.
        """
        ttl = settings.OTP_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        cooldown = (
            settings.OTP_RESEND_COOLDOWN_SECONDS
            if resend_cooldown_seconds is None
            else resend_cooldown_seconds
        )
        attempts = settings.OTP_MAX_ATTEMPTS if max_attempts is None else max_attempts
        length = settings.OTP_LENGTH if code_length is None else code_length
        rounds = settings.OTP_HASH_ROUNDS if hash_rounds is None else hash_rounds

        if ttl <= 0:
            raise ValueError("ttl_seconds must be positive")
        if cooldown < 0:
            raise ValueError("resend_cooldown_seconds cannot be negative")
        if attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if length <= 0:
            raise ValueError("code_length must be positive")

        cls._ttl_seconds = ttl
        cls._resend_cooldown_seconds = cooldown
        cls._max_attempts = attempts
        cls._code_length = length
        cls._hash_rounds = rounds
        cls._clock = clock or SystemClock()
        cls._initialized = True

        otp_logger.info(
            f"OTPService initialized: ttl={ttl}s, cooldown={cooldown}s, "
            f"max_attempts={attempts}, length={length}"
        )

    @classmethod
    def _reset(cls) -> None:
        """Restore settings-derived defaults. Test teardown only."""
        cls._ttl_seconds = settings.OTP_TTL_SECONDS
        cls._resend_cooldown_seconds = settings.OTP_RESEND_COOLDOWN_SECONDS
        cls._max_attempts = settings.OTP_MAX_ATTEMPTS
        cls._code_length = settings.OTP_LENGTH
        cls._hash_rounds = settings.OTP_HASH_ROUNDS
        cls._clock = SystemClock()
        super()._reset()

    @classmethod
    def now(cls) -> datetime:
        return cls._clock.now()

    # =========================================================================
    # Lifecycle operations
    # =========================================================================

    @classmethod
    async def issue(
        cls,
        session: AsyncSession,
        phone: str,
        purpose: OTPPurpose,
        user_id: UUID | None = None,
        commit_self: bool = True,
    ) -> OTPIssueResult:
        """
        Issue a new code for a phone and purpose.

        Args:
            session: The database session.
            phone: Destination phone number. Cannot be empty.
            purpose: What the code authorises.
            user_id: Optional account reference stored with the record.
            commit_self: If True, commits the new record. Default True.

        Returns:
            OTPIssueResult: Acknowledgment with the expiry and plaintext code.

        Raises:
            ValueError: If phone is empty.
            OTPCooldownActiveException: If the newest active record for the
                pair was created less than the cooldown ago. Nothing is written.
        """
        if not phone:
            raise ValueError("Phone cannot be empty")

        now = cls.now()
        latest = await otp_record_db.get_latest_active(
            session=session, phone=phone, purpose=purpose
        )

        if latest is not None:
            elapsed = (now - latest.created_at).total_seconds()
            if elapsed < cls._resend_cooldown_seconds:
                remaining = seconds_remaining(cls._resend_cooldown_seconds, elapsed)
                otp_logger.warning(
                    f"OTP issue rejected: cooldown active for {mask_phone(phone)}, "
                    f"purpose={purpose.value}, remaining={remaining}s"
                )
                raise OTPCooldownActiveException(remaining_seconds=remaining)

        code = generate_numeric_code(cls._code_length)
        expires_at = now + timedelta(seconds=cls._ttl_seconds)

        record = await otp_record_db.create(
            session=session,
            data={
                "phone": phone,
                "purpose": purpose,
                "code_hash": hash_otp(code, cls._hash_rounds),
                "user_id": user_id,
                "attempts": 0,
                "max_attempts": cls._max_attempts,
                "status": OTPStatus.ACTIVE,
                "expires_at": expires_at,
                "created_at": now,
                "updated_at": now,
            },
            commit_self=commit_self,
        )

        otp_logger.info(
            f"OTP issued: phone={mask_phone(phone)}, purpose={purpose.value}, "
            f"record={record.id}, expires_at={expires_at.isoformat()}"
        )
        return OTPIssueResult(
            message="OTP sent",
            expires_at=expires_at,
            code=code,
            record_id=record.id,
        )

    @classmethod
    async def verify(
        cls,
        session: AsyncSession,
        phone: str,
        purpose: OTPPurpose,
        code: str,
        commit_self: bool = True,
    ) -> OTPVerifyResult:
        """
        Verify a code against the newest active record for a phone and purpose.

        Checks run in this order: existence, expiry, attempt ceiling, code.
        The code format is not validated here, only matched.

        Args:
            session: The database session.
            phone: Destination phone number.
            purpose: What the code authorises.
            code: The code entered by the user.
            commit_self: If True, commits every state change. Callers passing
                False must commit before letting an exception roll back.

        Returns:
            OTPVerifyResult: valid=True and the consumed record's IDs.

        Raises:
            OTPNotFoundException: No active record, or a concurrent call
                finalised it first.
            OTPExpiredException: The record expired; it is marked EXPIRED.
            OTPAttemptsExceededException: The ceiling was already reached;
                the record is marked EXHAUSTED.
            OTPInvalidException: The code did not match; attempts += 1.
        """
        record = await otp_record_db.get_latest_active(
            session=session, phone=phone, purpose=purpose
        )

        if record is None:
            otp_logger.warning(
                f"OTP verification failed: no active OTP for {mask_phone(phone)}, "
                f"purpose={purpose.value}"
            )
            raise OTPNotFoundException()

        now = cls.now()

        if now > record.expires_at:
            await otp_record_db.mark_used(
                session=session,
                record_id=record.id,
                status=OTPStatus.EXPIRED,
                used_at=now,
                commit_self=commit_self,
            )
            otp_logger.warning(f"OTP verification failed: record {record.id} expired")
            raise OTPExpiredException()

        if record.attempts >= record.max_attempts:
            await otp_record_db.mark_used(
                session=session,
                record_id=record.id,
                status=OTPStatus.EXHAUSTED,
                used_at=now,
                commit_self=commit_self,
            )
            otp_logger.warning(
                f"OTP verification failed: record {record.id} exhausted "
                f"after {record.attempts} attempts"
            )
            raise OTPAttemptsExceededException()

        if not verify_otp_hash(code, record.code_hash):
            await otp_record_db.increment_attempts(
                session=session,
                record_id=record.id,
                commit_self=commit_self,
            )
            otp_logger.warning(
                f"OTP verification failed: invalid code for record {record.id}"
            )
            raise OTPInvalidException()

        consumed = await otp_record_db.mark_used(
            session=session,
            record_id=record.id,
            status=OTPStatus.CONSUMED,
            used_at=now,
            commit_self=commit_self,
        )
        if not consumed:
            otp_logger.warning(
                f"OTP verification failed: record {record.id} was finalised concurrently"
            )
            raise OTPNotFoundException()

        otp_logger.info(
            f"OTP verified: phone={mask_phone(phone)}, purpose={purpose.value}, "
            f"record={record.id}"
        )
        return OTPVerifyResult(valid=True, record_id=record.id, user_id=record.user_id)

    @classmethod
    async def revoke_active(
        cls,
        session: AsyncSession,
        phone: str,
        purpose: OTPPurpose,
        commit_self: bool = True,
    ) -> int:
        """
        Revoke every active code for a phone and purpose.

        A no-op when nothing is active.

        Args:
            session: The database session.
            phone: Destination phone number.
            purpose: What the codes authorise.
            commit_self: If True, commits the bulk update. Default True.

        Returns:
            int: Number of records revoked.
        """
        revoked = await otp_record_db.mark_used_bulk(
            session=session,
            phone=phone,
            purpose=purpose,
            status=OTPStatus.REVOKED,
            used_at=cls.now(),
            commit_self=commit_self,
        )
        otp_logger.info(
            f"OTP revoked: phone={mask_phone(phone)}, purpose={purpose.value}, "
            f"count={revoked}"
        )
        return revoked

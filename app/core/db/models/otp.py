"""
OTP record model for phone one-time codes.

"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Enum, Index, Integer, String, Uuid
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db.models.base import BaseModel, UTCDateTime
from app.core.enums import OTPPurpose, OTPStatus


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class OTPRecord(BaseModel):
    """
    One issued OTP code.

    Only the bcrypt hash of the code is stored. A phone may have many
    historical records per purpose; the newest ACTIVE one is authoritative.
    Records leave ACTIVE exactly once and are immutable afterwards.

    Attributes:
        phone: Destination phone number (normalised, not unique).
        purpose: What the code authorises.
        code_hash: bcrypt hash of the code.
        expires_at: When the code stops being accepted.
        attempts: Wrong verification attempts so far.
        max_attempts: Attempt ceiling fixed at issuance.
        status: ACTIVE or the terminal reason the record was used.
        used_at: When the record left ACTIVE (None while active).
        user_id: Optional account reference, informational only.
    """

    __tablename__ = "otp_records"
    __table_args__ = (
        Index(
            "ix_otp_records_lookup",
            "phone",
            "purpose",
            "status",
            "created_at",
        ),
    )

    phone: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        index=True,
    )

    purpose: Mapped[OTPPurpose] = mapped_column(
        Enum(
            OTPPurpose,
            native_enum=False,
            name="otp_purpose",
            values_callable=_enum_values,
        ),
        nullable=False,
    )

    code_hash: Mapped[str] = mapped_column(
        String(60),  # bcrypt hashes are 60 characters
        nullable=False,
    )

    expires_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        index=True,
    )

    attempts: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    max_attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    status: Mapped[OTPStatus] = mapped_column(
        Enum(
            OTPStatus,
            native_enum=False,
            name="otp_status",
            values_callable=_enum_values,
        ),
        default=OTPStatus.ACTIVE,
        nullable=False,
    )

    used_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    user_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        index=True,
    )

    @hybrid_property
    def is_used(self) -> bool:
        return self.status != OTPStatus.ACTIVE

    def __repr__(self) -> str:
        return (
            f"<OTPRecord id={self.id} purpose={self.purpose!r} "
            f"status={self.status!r} attempts={self.attempts}/{self.max_attempts}>"
        )


__all__ = ["OTPRecord"]

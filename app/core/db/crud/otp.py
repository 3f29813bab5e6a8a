"""
CRUD operations for OTPRecord model.

Every write is a single UPDATE guarded on the record still being ACTIVE,
so concurrent verify calls cannot lose an attempt increment or consume a
code twice.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.crud.base import BaseDB
from app.core.db.models.otp import OTPRecord
from app.core.enums import OTPPurpose, OTPStatus


class OTPRecordDB(BaseDB[OTPRecord]):
    """
    CRUD operations for OTPRecord model.

    Provides the persistence primitives the OTP lifecycle needs: latest
    active lookup, guarded attempt increments, terminal transitions, and
    cleanup of expired rows.
    """

    def __init__(self):
        super().__init__(model=OTPRecord)

    async def get_latest_active(
        self,
        session: AsyncSession,
        phone: str,
        purpose: OTPPurpose,
    ) -> OTPRecord | None:
        """
        Retrieve the most recently created ACTIVE record for a phone and purpose.

        Expiry is not filtered here; the caller decides what an expired
        active record means.

        Args:
            session: The async database session.
            phone: The destination phone number.
            purpose: The purpose of the OTP.

        Returns:
            The newest active OTPRecord, or None.

        Raises:
            DatabaseException: If a database error occurs.
        """
        result = await self.get_all(
            session=session,
            filters=[
                self.model.phone == phone,
                self.model.purpose == purpose,
                self.model.status == OTPStatus.ACTIVE,
            ],
            order_by=[self.model.created_at.desc()],
            limit=1,
        )
        return result[0] if result else None

    async def increment_attempts(
        self,
        session: AsyncSession,
        record_id: UUID,
        commit_self: bool = True,
    ) -> bool:
        """
        Atomically add one to the attempt counter.

        Runs ``UPDATE ... SET attempts = attempts + 1 WHERE id = ? AND
        status = 'active' AND attempts < max_attempts``.

        Args:
            session: The async database session.
            record_id: The OTP record to update.
            commit_self: Whether to commit the session after updating.

        Returns:
            True if the counter was incremented, False if the record was no
            longer active or already at its ceiling.

        Raises:
            DatabaseException: If a database error occurs.
        """
        updated = await self.update_by_conditions(
            session=session,
            conditions=[
                self.model.id == record_id,
                self.model.status == OTPStatus.ACTIVE,
                self.model.attempts < self.model.max_attempts,
            ],
            updates={"attempts": self.model.attempts + 1},
            commit_self=commit_self,
        )
        return updated == 1

    async def mark_used(
        self,
        session: AsyncSession,
        record_id: UUID,
        status: OTPStatus,
        used_at: datetime,
        commit_self: bool = True,
    ) -> bool:
        """
        Move one ACTIVE record to a terminal status.

        Args:
            session: The async database session.
            record_id: The OTP record to finalise.
            status: The terminal status (anything but ACTIVE).
            used_at: When the transition happened.
            commit_self: Whether to commit the session after updating.

        Returns:
            True if this call performed the transition, False if the record
            had already left ACTIVE.

        Raises:
            ValueError: If status is ACTIVE.
            DatabaseException: If a database error occurs.
        """
        if status == OTPStatus.ACTIVE:
            raise ValueError("mark_used requires a terminal status")

        updated = await self.update_by_conditions(
            session=session,
            conditions=[
                self.model.id == record_id,
                self.model.status == OTPStatus.ACTIVE,
            ],
            updates={"status": status, "used_at": used_at},
            commit_self=commit_self,
        )
        return updated == 1

    async def mark_used_bulk(
        self,
        session: AsyncSession,
        phone: str,
        purpose: OTPPurpose,
        status: OTPStatus,
        used_at: datetime,
        commit_self: bool = True,
    ) -> int:
        """
        Move every ACTIVE record for a phone and purpose to a terminal status.

        Args:
            session: The async database session.
            phone: The destination phone number.
            purpose: The purpose of the OTP.
            status: The terminal status (anything but ACTIVE).
            used_at: When the transition happened.
            commit_self: Whether to commit the session after updating.

        Returns:
            The number of records updated.

        Raises:
            ValueError: If status is ACTIVE.
            DatabaseException: If a database error occurs.
        """
        if status == OTPStatus.ACTIVE:
            raise ValueError("mark_used_bulk requires a terminal status")

        return await self.update_by_conditions(
            session=session,
            conditions=[
                self.model.phone == phone,
                self.model.purpose == purpose,
                self.model.status == OTPStatus.ACTIVE,
            ],
            updates={"status": status, "used_at": used_at},
            commit_self=commit_self,
        )

    async def delete_expired(
        self,
        session: AsyncSession,
        before: datetime,
        commit_self: bool = True,
    ) -> int:
        """
        Permanently delete records whose expiry is earlier than `before`.

        Used by the periodic cleanup job; the lifecycle itself never deletes.

        Args:
            session: The async database session.
            before: Records with expires_at < before are removed.
            commit_self: Whether to commit the session after deleting.

        Returns:
            The number of records deleted.

        Raises:
            DatabaseException: If a database error occurs.
        """
        return await self.delete_by_conditions(
            session=session,
            conditions=[self.model.expires_at < before],
            commit_self=commit_self,
        )


__all__ = ["OTPRecordDB"]

"""
Test suite for OTPRecord CRUD operations.

Run tests:
    pytest tests/core/db/crud/test_otp_crud.py -v

Run with coverage:
    pytest tests/core/db/crud/test_otp_crud.py --cov=app.core.db.crud.otp --cov-report=term-missing -v
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.crud import otp_record_db
from app.core.db.models import OTPRecord
from app.core.enums import OTPPurpose, OTPStatus
from app.core.exceptions.types import DatabaseException

PHONE = "+6281234567890"
NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


async def _create_record(
    session: AsyncSession,
    phone: str = PHONE,
    purpose: OTPPurpose = OTPPurpose.LOGIN,
    created_at: datetime = NOW,
    ttl_seconds: int = 300,
    **overrides,
) -> OTPRecord:
    data = {
        "phone": phone,
        "purpose": purpose,
        "code_hash": "$2b$04$" + "x" * 53,
        "expires_at": created_at + timedelta(seconds=ttl_seconds),
        "attempts": 0,
        "max_attempts": 3,
        "status": OTPStatus.ACTIVE,
        "created_at": created_at,
        "updated_at": created_at,
    }
    data.update(overrides)
    return await otp_record_db.create(session, data=data)


async def _reload(session: AsyncSession, record_id) -> OTPRecord:
    result = await session.execute(
        select(OTPRecord)
        .where(OTPRecord.id == record_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


class TestCreate:

    async def test_create_persists_aware_datetimes(self, db_session: AsyncSession):
        record = await _create_record(db_session)

        reloaded = await _reload(db_session, record.id)
        assert reloaded.created_at == NOW
        assert reloaded.expires_at == NOW + timedelta(seconds=300)
        assert reloaded.expires_at.tzinfo is not None
        assert reloaded.status == OTPStatus.ACTIVE
        assert reloaded.is_used is False

    async def test_create_rejects_naive_datetime(self, db_session: AsyncSession):
        with pytest.raises(DatabaseException):
            await _create_record(db_session, created_at=datetime(2026, 1, 1, 12, 0))


class TestGetLatestActive:

    async def test_returns_none_when_nothing_issued(self, db_session: AsyncSession):
        assert (
            await otp_record_db.get_latest_active(db_session, PHONE, OTPPurpose.LOGIN)
            is None
        )

    async def test_returns_newest_active_record(self, db_session: AsyncSession):
        await _create_record(db_session, created_at=NOW)
        newer = await _create_record(db_session, created_at=NOW + timedelta(minutes=2))

        latest = await otp_record_db.get_latest_active(
            db_session, PHONE, OTPPurpose.LOGIN
        )

        assert latest is not None
        assert latest.id == newer.id

    async def test_skips_used_records(self, db_session: AsyncSession):
        older = await _create_record(db_session, created_at=NOW)
        await _create_record(
            db_session,
            created_at=NOW + timedelta(minutes=2),
            status=OTPStatus.CONSUMED,
            used_at=NOW + timedelta(minutes=3),
        )

        latest = await otp_record_db.get_latest_active(
            db_session, PHONE, OTPPurpose.LOGIN
        )

        assert latest is not None
        assert latest.id == older.id

    async def test_scoped_by_phone_and_purpose(self, db_session: AsyncSession):
        await _create_record(db_session, purpose=OTPPurpose.REGISTER)
        await _create_record(db_session, phone="+6289999999999")

        assert (
            await otp_record_db.get_latest_active(db_session, PHONE, OTPPurpose.RESET)
            is None
        )
        latest = await otp_record_db.get_latest_active(
            db_session, PHONE, OTPPurpose.REGISTER
        )
        assert latest is not None
        assert latest.purpose == OTPPurpose.REGISTER

    async def test_does_not_filter_expired(self, db_session: AsyncSession):
        record = await _create_record(db_session, created_at=NOW - timedelta(days=1))

        latest = await otp_record_db.get_latest_active(
            db_session, PHONE, OTPPurpose.LOGIN
        )

        assert latest is not None
        assert latest.id == record.id


class TestIncrementAttempts:

    async def test_increments_by_one(self, db_session: AsyncSession):
        record = await _create_record(db_session)

        assert await otp_record_db.increment_attempts(db_session, record.id) is True
        assert await otp_record_db.increment_attempts(db_session, record.id) is True

        assert (await _reload(db_session, record.id)).attempts == 2

    async def test_stops_at_ceiling(self, db_session: AsyncSession):
        record = await _create_record(db_session, attempts=3)

        assert await otp_record_db.increment_attempts(db_session, record.id) is False
        assert (await _reload(db_session, record.id)).attempts == 3

    async def test_ignores_used_record(self, db_session: AsyncSession):
        record = await _create_record(
            db_session, status=OTPStatus.REVOKED, used_at=NOW
        )

        assert await otp_record_db.increment_attempts(db_session, record.id) is False
        assert (await _reload(db_session, record.id)).attempts == 0


class TestMarkUsed:

    async def test_transitions_active_record(self, db_session: AsyncSession):
        record = await _create_record(db_session)
        used_at = NOW + timedelta(seconds=30)

        assert (
            await otp_record_db.mark_used(
                db_session, record.id, OTPStatus.CONSUMED, used_at
            )
            is True
        )

        reloaded = await _reload(db_session, record.id)
        assert reloaded.status == OTPStatus.CONSUMED
        assert reloaded.used_at == used_at
        assert reloaded.is_used is True

    async def test_second_transition_loses(self, db_session: AsyncSession):
        record = await _create_record(db_session)

        first = await otp_record_db.mark_used(
            db_session, record.id, OTPStatus.CONSUMED, NOW
        )
        second = await otp_record_db.mark_used(
            db_session, record.id, OTPStatus.EXPIRED, NOW
        )

        assert (first, second) == (True, False)
        assert (await _reload(db_session, record.id)).status == OTPStatus.CONSUMED

    async def test_rejects_active_status(self, db_session: AsyncSession):
        record = await _create_record(db_session)

        with pytest.raises(ValueError):
            await otp_record_db.mark_used(
                db_session, record.id, OTPStatus.ACTIVE, NOW
            )

    async def test_unknown_record(self, db_session: AsyncSession):
        assert (
            await otp_record_db.mark_used(
                db_session, uuid4(), OTPStatus.CONSUMED, NOW
            )
            is False
        )


class TestMarkUsedBulk:

    async def test_revokes_all_active_for_pair(self, db_session: AsyncSession):
        first = await _create_record(db_session, created_at=NOW)
        second = await _create_record(db_session, created_at=NOW + timedelta(minutes=2))
        consumed = await _create_record(
            db_session, status=OTPStatus.CONSUMED, used_at=NOW
        )
        other_purpose = await _create_record(db_session, purpose=OTPPurpose.RESET)

        revoked = await otp_record_db.mark_used_bulk(
            db_session, PHONE, OTPPurpose.LOGIN, OTPStatus.REVOKED, NOW
        )

        assert revoked == 2
        assert (await _reload(db_session, first.id)).status == OTPStatus.REVOKED
        assert (await _reload(db_session, second.id)).status == OTPStatus.REVOKED
        assert (await _reload(db_session, consumed.id)).status == OTPStatus.CONSUMED
        assert (await _reload(db_session, other_purpose.id)).status == OTPStatus.ACTIVE

    async def test_no_active_records(self, db_session: AsyncSession):
        assert (
            await otp_record_db.mark_used_bulk(
                db_session, PHONE, OTPPurpose.LOGIN, OTPStatus.REVOKED, NOW
            )
            == 0
        )


class TestDeleteExpired:

    async def test_deletes_only_records_expired_before_cutoff(
        self, db_session: AsyncSession
    ):
        expired = await _create_record(db_session, created_at=NOW - timedelta(hours=2))
        expired_used = await _create_record(
            db_session,
            created_at=NOW - timedelta(hours=3),
            status=OTPStatus.CONSUMED,
            used_at=NOW - timedelta(hours=3),
        )
        live = await _create_record(db_session, created_at=NOW)

        deleted = await otp_record_db.delete_expired(db_session, before=NOW)

        assert deleted == 2
        assert await otp_record_db.get_by_id(db_session, expired.id) is None
        assert await otp_record_db.get_by_id(db_session, expired_used.id) is None
        assert await otp_record_db.get_by_id(db_session, live.id) is not None

"""
Test suite for scheduler jobs.

Run tests:
    pytest tests/infrastructure/scheduler/test_jobs.py -v

Run with coverage:
    pytest tests/infrastructure/scheduler/test_jobs.py --cov=app.infrastructure.scheduler.jobs --cov-report=term-missing -v
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.db.crud import otp_record_db
from app.core.db.models import OTPRecord
from app.core.enums import OTPPurpose, OTPStatus
from app.infrastructure.scheduler.jobs import cleanup_expired_otps


async def _add_record(
    session: AsyncSession, expires_at: datetime, status: OTPStatus = OTPStatus.ACTIVE
) -> OTPRecord:
    created_at = expires_at - timedelta(minutes=5)
    return await otp_record_db.create(
        session,
        data={
            "phone": "+6281234567890",
            "purpose": OTPPurpose.LOGIN,
            "code_hash": "$2b$04$" + "x" * 53,
            "expires_at": expires_at,
            "attempts": 0,
            "max_attempts": 3,
            "status": status,
            "created_at": created_at,
            "updated_at": created_at,
        },
    )


async def _ids(session: AsyncSession) -> set:
    result = await session.execute(select(OTPRecord.id))
    return set(result.scalars().all())


class TestCleanupExpiredOTPsJob:

    async def test_deletes_expired_records_in_any_status(
        self,
        db_session: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        now = datetime.now(timezone.utc)
        expired = await _add_record(db_session, now - timedelta(hours=1))
        expired_used = await _add_record(
            db_session, now - timedelta(hours=2), status=OTPStatus.EXPIRED
        )
        live = await _add_record(db_session, now + timedelta(minutes=5))

        with patch(
            "app.infrastructure.scheduler.jobs.AsyncSessionLocal", session_factory
        ):
            deleted = await cleanup_expired_otps()

        assert deleted == 2
        remaining = await _ids(db_session)
        assert live.id in remaining
        assert expired.id not in remaining
        assert expired_used.id not in remaining

    async def test_grace_period_keeps_recently_expired(
        self,
        db_session: AsyncSession,
        session_factory: async_sessionmaker[AsyncSession],
    ):
        now = datetime.now(timezone.utc)
        recent = await _add_record(db_session, now - timedelta(minutes=10))
        old = await _add_record(db_session, now - timedelta(hours=3))

        with patch(
            "app.infrastructure.scheduler.jobs.AsyncSessionLocal", session_factory
        ):
            deleted = await cleanup_expired_otps(grace_minutes=60)

        assert deleted == 1
        remaining = await _ids(db_session)
        assert recent.id in remaining
        assert old.id not in remaining

    async def test_nothing_to_delete(
        self, session_factory: async_sessionmaker[AsyncSession]
    ):
        with patch(
            "app.infrastructure.scheduler.jobs.AsyncSessionLocal", session_factory
        ), patch("app.infrastructure.scheduler.jobs.scheduler_logger") as mock_logger:
            deleted = await cleanup_expired_otps()

        assert deleted == 0
        assert "Deleted 0 record(s)" in mock_logger.info.call_args_list[-1][0][0]

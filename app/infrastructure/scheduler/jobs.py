from datetime import datetime, timedelta, timezone

from app.core.config import scheduler_logger
from app.core.db import AsyncSessionLocal
from app.core.db.crud import otp_record_db


async def cleanup_expired_otps(grace_minutes: int = 0) -> int:
    """
    Periodic task to permanently delete OTP records that expired more than
    `grace_minutes` ago, whatever their status.

    Args:
        grace_minutes (int): How long expired records are kept before removal.

    Returns:
        int: The number of records deleted.
    """
    cutoff = datetime.now(timezone.utc) - timedelta(minutes=grace_minutes)
    async with AsyncSessionLocal.begin() as session:
        scheduler_logger.info(
            f"Starting cleanup of OTP records expired before {cutoff.isoformat()}"
        )
        deleted_count = await otp_record_db.delete_expired(
            session, before=cutoff, commit_self=False
        )
        scheduler_logger.info(
            f"Completed cleanup of expired OTP records. Deleted {deleted_count} record(s)."
        )
    return deleted_count

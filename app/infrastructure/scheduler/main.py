"""
Scheduler Module for RideOTP.

Standalone Usage:
    python -m app.infrastructure.scheduler.main
"""

import asyncio
import logging
import signal
from datetime import timezone

from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.engine import make_url

from app.core.config import scheduler_logger, settings
from app.core.db import dispose_db


logging.getLogger("apscheduler").setLevel(logging.INFO)


def _sync_database_url() -> str:
    """Convert the async DATABASE_URL to a synchronous one for APScheduler.

    Only the driver is dropped (postgresql+asyncpg -> postgresql,
    sqlite+aiosqlite -> sqlite); credentials and options are preserved.
    """
    url = make_url(settings.DATABASE_URL)
    return url.set(drivername=url.get_backend_name()).render_as_string(
        hide_password=False
    )


scheduler = AsyncIOScheduler(
    jobstores={
        "cleanups": SQLAlchemyJobStore(
            url=_sync_database_url(),
            tablename="scheduler_cleanup_jobs",
        ),
    },
    timezone=timezone.utc,
)


def schedule_cleanup_expired_otps_job(
    interval_minutes: int = 60, grace_minutes: int = 0
) -> None:
    """
    Schedule the cleanup_expired_otps job to run at the given interval.
    """
    # Import here to avoid circular import issues
    from app.infrastructure.scheduler.jobs import cleanup_expired_otps

    scheduler_logger.info(
        f"Scheduling 'cleanup_expired_otps' job to run every {interval_minutes} minutes"
    )
    scheduler.add_job(
        cleanup_expired_otps,
        trigger=IntervalTrigger(minutes=interval_minutes, timezone=timezone.utc),
        replace_existing=True,
        id="cleanup_expired_otps_job",
        jobstore="cleanups",
        misfire_grace_time=60 * 10,  # 10 minutes grace time
        coalesce=True,
        kwargs={"grace_minutes": grace_minutes},
    )
    scheduler_logger.info("'cleanup_expired_otps' job scheduled successfully.")


def initialize_scheduler() -> None:
    """
    Initialize the scheduler by scheduling all required jobs.

    This function should be called during application startup to ensure
    that all scheduled tasks are registered and ready to run.
    """
    schedule_cleanup_expired_otps_job(
        interval_minutes=settings.OTP_CLEANUP_INTERVAL_MINUTES,
        grace_minutes=settings.OTP_CLEANUP_GRACE_MINUTES,
    )


async def main() -> None:
    """
    Main entry point for standalone scheduler execution.

    Starts the scheduler and runs until interrupted.
    """
    shutdown_event = asyncio.Event()

    def handle_shutdown(signum, frame):
        scheduler_logger.info(f"Received signal {signum}, initiating shutdown...")
        shutdown_event.set()

    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)

    scheduler_logger.info("Starting standalone scheduler...")

    try:
        scheduler.start()
        scheduler_logger.info("Scheduler started successfully. Waiting for jobs...")
        initialize_scheduler()  # Schedule jobs after starting the scheduler
        await shutdown_event.wait()

    except Exception as e:
        scheduler_logger.exception(f"Scheduler error: {e}")
        raise

    finally:
        scheduler_logger.info("Shutting down scheduler...")

        if scheduler.running:
            scheduler.shutdown(wait=True)
            scheduler_logger.info("Scheduler stopped successfully.")

        await dispose_db()
        scheduler_logger.info("Scheduler shutdown complete.")


if __name__ == "__main__":
    asyncio.run(main())

from app.infrastructure.scheduler.jobs import cleanup_expired_otps
from app.infrastructure.scheduler.main import (
    initialize_scheduler,
    schedule_cleanup_expired_otps_job,
    scheduler,
)

__all__ = [
    "scheduler",
    "cleanup_expired_otps",
    "schedule_cleanup_expired_otps_job",
    "initialize_scheduler",
]

"""
Shared services for the application.

"""

from app.core.services.base import SingletonService
from app.core.services.clock import Clock, SystemClock
from app.core.services.event_publisher import (
    EventPublisher,
    get_publisher,
    has_publisher,
    register_publisher,
    reset_publisher,
)
from app.core.services.otp import OTPIssueResult, OTPService, OTPVerifyResult

__all__ = [
    "SingletonService",
    "Clock",
    "SystemClock",
    "EventPublisher",
    "get_publisher",
    "has_publisher",
    "register_publisher",
    "reset_publisher",
    "OTPService",
    "OTPIssueResult",
    "OTPVerifyResult",
]

from app.core.db.models.base import BaseModel, UTCDateTime
from app.core.db.models.otp import OTPRecord

__all__ = [
    "BaseModel",
    "OTPRecord",
    "UTCDateTime",
]

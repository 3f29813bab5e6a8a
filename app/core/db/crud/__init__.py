from app.core.db.crud.base import BaseDB
from app.core.db.crud.otp import OTPRecordDB

# Global CRUD instances - use these instead of creating new instances
otp_record_db = OTPRecordDB()

__all__ = [
    "BaseDB",
    "OTPRecordDB",
    "otp_record_db",
]

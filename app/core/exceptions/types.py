from fastapi import status


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code or status.HTTP_500_INTERNAL_SERVER_ERROR
        self.details = details
        super().__init__(message)


class DatabaseException(AppException):
    """Exception raised for database-related errors."""

    def __init__(self, message: str = "A database error occurred."):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class OTPException(AppException):
    """Base class for recoverable OTP lifecycle failures."""


class OTPCooldownActiveException(OTPException):
    """Exception raised when a new OTP is requested inside the resend cooldown."""

    def __init__(self, remaining_seconds: int, message: str | None = None):
        self.remaining_seconds = remaining_seconds
        super().__init__(
            message
            or f"Please wait {remaining_seconds}s before requesting another OTP.",
            status.HTTP_429_TOO_MANY_REQUESTS,
            {"remaining_seconds": remaining_seconds},
        )


class OTPNotFoundException(OTPException):
    """Exception raised when there is no active OTP for the phone and purpose."""

    def __init__(self, message: str = "OTP not found."):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class OTPExpiredException(OTPException):
    """Exception raised when OTP has expired."""

    def __init__(self, message: str = "OTP has expired. Please request a new one."):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class OTPAttemptsExceededException(OTPException):
    """Exception raised when the OTP verification attempt ceiling was reached."""

    def __init__(
        self, message: str = "Max attempts exceeded. Please request a new OTP."
    ):
        super().__init__(message, status.HTTP_429_TOO_MANY_REQUESTS)


class OTPInvalidException(OTPException):
    """Exception raised when the supplied OTP code does not match."""

    def __init__(self, message: str = "Invalid OTP code."):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


__all__ = [
    "AppException",
    "DatabaseException",
    "OTPException",
    "OTPCooldownActiveException",
    "OTPNotFoundException",
    "OTPExpiredException",
    "OTPAttemptsExceededException",
    "OTPInvalidException",
]

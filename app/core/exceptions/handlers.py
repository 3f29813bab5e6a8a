from fastapi import Request, status
from fastapi.responses import JSONResponse

from app.core.config import request_logger
from app.core.exceptions.types import (
    AppException,
    DatabaseException,
    OTPCooldownActiveException,
    OTPException,
)


async def general_exception_handler(request: Request, exc: AppException):
    """
    Handles general exceptions by returning a JSON response with the error message.

    Args:
        request: The request object.
        exc (AppException): The exception instance.

    Returns:
        JSONResponse: A response containing the error message and the exception's status code.
    """
    request_logger.error(f"GeneralException: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": f"An unexpected error occurred.\n{str(exc)}"},
    )


async def database_exception_handler(request: Request, exc: DatabaseException):
    """
    Handles database exceptions by returning a JSON response with the error message.

    Args:
        request: The request object.
        exc (DatabaseException): The database exception instance.

    Returns:
        JSONResponse: A response containing the error message and status code 500.
    """
    request_logger.error(f"DatabaseException: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": f"A database error occurred.\n{str(exc)}"},
    )


async def otp_exception_handler(request: Request, exc: OTPException):
    """
    Handles OTP lifecycle failures (not found, expired, invalid, exhausted).

    Args:
        request: The request object.
        exc (OTPException): The OTP exception instance.

    Returns:
        JSONResponse: A response containing the error message and the exception's status code.
    """
    request_logger.warning(f"{type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc)},
    )


async def otp_cooldown_exception_handler(
    request: Request, exc: OTPCooldownActiveException
):
    """
    Handles resend cooldown rejections with a Retry-After header.

    Args:
        request: The request object.
        exc (OTPCooldownActiveException): The cooldown exception instance.

    Returns:
        JSONResponse: A response with status code 429 and Retry-After header.
    """
    request_logger.warning(f"OTPCooldownActiveException: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": str(exc),
            "remaining_seconds": exc.remaining_seconds,
        },
        headers={"Retry-After": str(exc.remaining_seconds)},
    )


exception_schema = {
    status.HTTP_500_INTERNAL_SERVER_ERROR: {
        "description": "Internal Server Error",
        "content": {
            "application/json": {
                "example": {"detail": "Some internal server error message"},
            }
        },
    },
}


__all__ = [
    "general_exception_handler",
    "database_exception_handler",
    "otp_exception_handler",
    "otp_cooldown_exception_handler",
    "exception_schema",
]

from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request, status
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.middleware.cors import CORSMiddleware

from app.core.config import app_logger, settings
from app.core.db import dispose_db
from app.core.dependencies import get_async_session
from app.core.exceptions.handlers import (
    database_exception_handler,
    exception_schema,
    general_exception_handler,
    otp_cooldown_exception_handler,
    otp_exception_handler,
)
from app.core.exceptions.types import (
    AppException,
    DatabaseException,
    OTPCooldownActiveException,
    OTPException,
)
from app.core.routers import otp_router
from app.core.services import OTPService, register_publisher, reset_publisher
from app.infrastructure.messaging import close_connection, publish_event
from app.infrastructure.scheduler import initialize_scheduler, scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_logger.info("Starting application...")

    # Initialize OTP service
    app_logger.info("Initializing OTP service...")
    OTPService.init()
    app_logger.info("OTP service initialized successfully.")

    # Register the delivery publisher (only if messaging is enabled)
    if settings.ENABLE_MESSAGING:
        app_logger.info("Registering RabbitMQ event publisher...")
        register_publisher(publish_event)
        app_logger.info("Event publisher registered successfully.")
    else:
        app_logger.info("Messaging disabled via ENABLE_MESSAGING setting.")

    # Start the scheduler (only if enabled)
    if settings.ENABLE_SCHEDULER:
        app_logger.info("Starting scheduler...")
        scheduler.start()
        app_logger.info("Scheduler started successfully.")
        initialize_scheduler()  # Schedule jobs after starting the scheduler
    else:
        app_logger.info("Scheduler disabled via ENABLE_SCHEDULER setting.")

    # Yield control back to the application
    yield

    # Cleanup on shutdown
    app_logger.info("Shutting down application...")

    # Stop the scheduler
    if settings.ENABLE_SCHEDULER and scheduler.running:
        app_logger.info("Stopping scheduler...")
        scheduler.shutdown()
        app_logger.info("Scheduler stopped successfully.")

    # Close the RabbitMQ connection
    if settings.ENABLE_MESSAGING:
        app_logger.info("Closing RabbitMQ connection...")
        reset_publisher()
        await close_connection()
        app_logger.info("RabbitMQ connection closed successfully.")

    # Release database connections
    await dispose_db()
    app_logger.info("Database connections released.")


app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=settings.APP_DESCRIPTION,
    debug=settings.DEBUG,
    openapi_url="/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    responses=exception_schema,
    root_path_in_servers=False,
    servers=[
        {
            "url": f"{settings.API_DOMAIN}",
        },
    ],
)

# Register exception handlers (order matters - more specific first)
app.add_exception_handler(OTPCooldownActiveException, otp_cooldown_exception_handler)
app.add_exception_handler(OTPException, otp_exception_handler)
app.add_exception_handler(DatabaseException, database_exception_handler)
# Generic fallback
app.add_exception_handler(AppException, general_exception_handler)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(otp_router, prefix="/otp", tags=["OTP"])


@app.get("/", include_in_schema=False)
async def root(request: Request):
    base_url = request.base_url._url.rstrip("/")
    return {
        "message": "Welcome to RideOTP API",
        "documentations": {
            "swagger": f"{base_url}/docs",
            "redoc": f"{base_url}/redoc",
        },
        "version": settings.APP_VERSION,
    }


@app.head("/health", include_in_schema=False)
@app.get("/health")
async def health_check(session: Annotated[AsyncSession, Depends(get_async_session)]):
    """
    Health check endpoint to verify if the API is running.

    Checks:
        - Database connectivity
    """
    health_status = {
        "status": "ok",
        "message": "RideOTP API is running.",
        "checks": {
            "database": "ok",
        },
    }

    try:
        result = await session.execute(text("SELECT 1"))
        if result.scalar() != 1:
            health_status["checks"]["database"] = "unhealthy"
            health_status["status"] = "degraded"
    except Exception as e:
        app_logger.error(f"Database health check failed: {e}")
        health_status["checks"]["database"] = "unhealthy"
        health_status["status"] = "degraded"

    # Return 503 if any check failed
    if health_status["status"] != "ok":
        raise AppException(
            "One or more health checks failed.",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=health_status,
        )

    return health_status

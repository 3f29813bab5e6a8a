"""
Pytest configuration and core fixtures.

Every test gets a fresh in-memory SQLite database with the schema created
from the models, a controllable clock, and a mocked delivery publisher.
All fixtures are function-scoped for complete test isolation.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool


def pytest_configure(config):
    """Configure the environment before any application module is imported."""
    os.environ["ENVIRONMENT"] = "test"
    os.environ.setdefault("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    os.environ["DATABASE_URL"] = os.environ["TEST_DATABASE_URL"]

    # Infrastructure is exercised through mocks only
    os.environ["ENABLE_SCHEDULER"] = "false"
    os.environ["ENABLE_MESSAGING"] = "false"
    os.environ["SENTRY_DSN"] = ""

    # Lowest bcrypt cost keeps hashing fast
    os.environ["OTP_HASH_ROUNDS"] = "4"
    os.environ["OTP_EXPOSE_CODE"] = "false"


class FakeClock:
    """Clock whose time only moves when a test says so."""

    def __init__(self, start: datetime):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current += timedelta(seconds=seconds)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a test engine with the full schema."""
    from app.core.config import settings
    from app.core.db import Base
    import app.core.db.models  # noqa: F401

    url = settings.TEST_DATABASE_URL
    if make_url(url).get_backend_name() == "sqlite":
        # One shared connection so every session sees the same in-memory database
        engine = create_async_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(url, pool_pre_ping=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=db_engine,
        autoflush=False,
        expire_on_commit=False,
        autobegin=True,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def otp_service(clock: FakeClock):
    """Initialise OTPService with production defaults and a fake clock."""
    from app.core.services import OTPService

    OTPService.init(
        ttl_seconds=300,
        resend_cooldown_seconds=60,
        max_attempts=3,
        code_length=6,
        hash_rounds=4,
        clock=clock,
    )
    try:
        yield OTPService
    finally:
        OTPService._reset()


@pytest.fixture(autouse=True)
def mock_publisher():
    """Register a mock delivery publisher so no test reaches RabbitMQ."""
    from app.core.services import register_publisher, reset_publisher

    publisher = AsyncMock(return_value=None)
    register_publisher(publisher)
    try:
        yield publisher
    finally:
        reset_publisher()


@pytest.fixture
def app():
    """Create FastAPI application for testing."""
    from app.main import app as fastapi_app

    return fastapi_app


@pytest.fixture
async def client(
    app, session_factory: async_sessionmaker[AsyncSession], otp_service
) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client whose requests use the test database."""
    from app.core.dependencies import get_async_session

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_session

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_async_session, None)

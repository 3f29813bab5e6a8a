from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    async_sessionmaker,
    AsyncAttrs,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

ASYNC_SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL


def engine_options(database_url: str) -> dict[str, Any]:
    """
    Build create_async_engine() keyword arguments for the given URL.

    SQLite (used by tests and local runs) has no connection pool sizing,
    so pool arguments are only passed to server databases.
    """
    options: dict[str, Any] = {"echo": settings.DEBUG}
    if make_url(database_url).get_backend_name() == "sqlite":
        return options

    options.update(
        pool_size=20,  # Increase pool size for concurrent connections
        max_overflow=30,  # Allow overflow connections
        pool_pre_ping=True,  # Validate connections before use
        pool_recycle=3600,  # Recycle connections every hour
    )
    return options


async_engine: AsyncEngine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL,
    **engine_options(ASYNC_SQLALCHEMY_DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    autoflush=False,
    expire_on_commit=False,
    autobegin=True,  # Automatically begin transactions
)


# Base class for declarative_base
class Base(AsyncAttrs, DeclarativeBase):
    pass


async def init_db() -> None:
    """
    Initializes the database by creating all the tables defined in the metadata.

    Returns:
        None
    """
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    """
    Dispose the database connection pool held by `async_engine`.

    Returns:
        None
    """
    await async_engine.dispose()

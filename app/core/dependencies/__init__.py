"""
Shared dependencies for FastAPI endpoints.

"""

from app.core.dependencies.db import get_async_session

__all__ = ["get_async_session"]

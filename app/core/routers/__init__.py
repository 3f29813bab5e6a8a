"""
Shared routers for the application.

This module exports all FastAPI routers included in the main application.
"""

from app.core.routers.otp import router as otp_router

__all__ = ["otp_router"]

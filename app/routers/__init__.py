"""Routers package for the DocVault API."""

from .documents import router as documents_router
from .notifications import router as notifications_router
from .realtime import router as realtime_router

__all__ = ["documents_router", "notifications_router", "realtime_router"]

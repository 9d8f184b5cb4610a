"""API endpoints for the vibe-logger service."""

from .auth import router as auth_router
from .health import router as health_router
from .tools import router as tools_router

__all__ = [
    "auth_router",
    "tools_router",
    "health_router",
]

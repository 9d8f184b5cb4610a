"""Health check and version endpoints."""

import time
from typing import Any

from fastapi import APIRouter, Depends

from .. import __version__
from ..core.vibe_logger import VibeLoggerService, get_service
from ..models import HealthResponse, VersionResponse

router = APIRouter(tags=["health"])

# Track service start time
_start_time = time.time()


def format_uptime(seconds_total: float) -> str:
    days, seconds_remaining = divmod(int(seconds_total), 86400)
    hours, seconds_remaining = divmod(seconds_remaining, 3600)
    minutes, seconds = divmod(seconds_remaining, 60)
    return f"Days: {days}, Hours: {hours}, Minutes: {minutes}, Seconds: {seconds}"


@router.get("/health", response_model=HealthResponse)
async def health_check(service: VibeLoggerService = Depends(get_service)) -> HealthResponse:
    """Health check endpoint.

    Reports ``degraded`` while no usable access token is held.
    """
    authenticated = service.token_manager.is_authenticated()
    return HealthResponse(
        status="healthy" if authenticated else "degraded",
        version=__version__,
        uptime=format_uptime(time.time() - _start_time),
        authenticated=authenticated,
        active_session=service.registry.current_session is not None,
    )


@router.get("/version", response_model=VersionResponse)
async def get_version() -> VersionResponse:
    """Get version information."""
    return VersionResponse(service_version=__version__)


@router.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with service information."""
    return {
        "service": "Vibe Logger",
        "version": __version__,
        "description": "Session documentation service backed by Google Docs",
        "docs": "/docs",
        "health": "/health",
        "tools": "/tools",
    }

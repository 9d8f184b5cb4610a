"""Main FastAPI application for the vibe-logger service."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from . import __version__
from .api import auth_router, health_router, tools_router
from .config import settings
from .core.errors import AuthError, ConfigError
from .core.vibe_logger import init_service, shutdown_service

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup and shutdown."""
    # Startup
    logger.info("Starting vibe-logger service...")
    logger.info(f"Service version: {app.version}")
    logger.info(f"Host: {settings.service_host}:{settings.service_port}")

    # Missing setup keeps the service up so /auth can finish it
    try:
        await init_service()
        logger.info("Credentials loaded")
    except ConfigError as e:
        logger.error(f"Configuration error: {e.message}")
        if e.remediation:
            logger.error(e.remediation)
    except AuthError as e:
        logger.warning(f"Authentication required: {e.message}")
        if e.authorization_url:
            logger.warning(f"Visit {e.authorization_url} and POST the code to /auth/code")

    logger.info("Vibe-logger service started successfully")

    yield

    # Shutdown
    logger.info("Shutting down vibe-logger service...")
    await shutdown_service()
    logger.info("Vibe-logger service stopped")


# Create FastAPI application
app = FastAPI(
    title="Vibe Logger",
    description="""
Session documentation service that writes development logs to Google Docs.

## Tools

- `POST /tools/start_session` - Create or continue today's project document
- `POST /tools/continue_session` - Resume today's session
- `POST /tools/end_session` - Close the session with a summary
- `POST /tools/log_decision` - Record a decision with rationale
- `POST /tools/log_activity` - Record development activity
- `POST /tools/save_conversation` - Preserve a discussion

## Authentication

- `GET /auth/status` - Current authentication state
- `GET /auth/url` - Consent-screen URL
- `POST /auth/code` - Exchange an authorization code
- `DELETE /auth/tokens` - Clear stored tokens
""",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Trusted host middleware (security)
if settings.service_host != "0.0.0.0":
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=[settings.service_host, "localhost", "127.0.0.1"],
    )

# Register routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(tools_router)


def main() -> None:
    """Main entry point for running the service."""
    import uvicorn

    uvicorn.run(
        "vibe_logger.main:app",
        host=settings.service_host,
        port=settings.service_port,
        log_level=settings.log_level,
        reload=False,
    )


if __name__ == "__main__":
    main()

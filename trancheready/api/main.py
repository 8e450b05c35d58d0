"""
TrancheReady API Main Application
=================================

FastAPI application entry point for the TrancheReady REST API.

Features:
    - OpenAPI documentation at /docs
    - Upload, validation, verify and download endpoints
    - CORS middleware for cross-origin requests
    - Per-client rate limiting (slowapi)
    - Structured request logging with request ids

Usage:
    # Development:
    uvicorn trancheready.api.main:app --reload

    # Production:
    uvicorn trancheready.api.main:app --host 0.0.0.0 --port 10000

Author: TrancheReady Team
Version: 1.0.0
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from trancheready.api.dependencies import ServiceContainer
from trancheready.api.ratelimit import limiter
from trancheready.api.routes import evidence_router, health_router
from trancheready.config import settings
from trancheready.logging import RequestLoggingMiddleware, get_logger, setup_logging


# Configure structured logging
setup_logging(level=settings.log_level, json_output=not settings.debug)
logger = get_logger(__name__)


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Services to serve from (defaults to the process-wide
            instance built from settings)

    Returns:
        Configured FastAPI instance
    """
    if container is None:
        container = ServiceContainer.get_instance()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Starting TrancheReady API...")
        container.initialize()
        yield
        container.shutdown()
        logger.info("TrancheReady API shutdown complete")

    app = FastAPI(
        title="TrancheReady API",
        description=(
            "AML/CTF client risk scoring with tamper-evident evidence packs.\n\n"
            "Upload `clients` and `transactions` CSV files to `/upload` to get "
            "per-client risk bands plus time-limited verify/download links."
        ),
        version=container.settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=container.settings.cors_origins_list,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "X-Requested-With"],
    )

    # Add rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Add structured request logging middleware
    app.add_middleware(
        RequestLoggingMiddleware,
        sample_rate=container.settings.request_log_sample,
    )

    # Register routers
    app.include_router(health_router)
    app.include_router(evidence_router)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint returning API info."""
        return {
            "service": container.settings.app_name,
            "version": container.settings.app_version,
            "ruleset_id": container.ruleset.ruleset_id,
            "docs": "/docs",
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "trancheready.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )

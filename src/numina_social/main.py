"""Main entry point for the Numina messaging application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from numina_social import __version__
from numina_social.api.errors import register_error_handlers
from numina_social.api.v1 import messages_router, ws_router
from numina_social.core.logging_config import configure_logging
from numina_social.core.settings import settings
from numina_social.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging(settings.log_level)
    registry = ConnectionRegistry()
    app.state.connection_registry = registry
    logger.info("%s %s starting", settings.app_name, settings.app_version)
    try:
        yield
    finally:
        await registry.shutdown()


# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Direct messaging API for the Numina fitness community",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

register_error_handlers(app)

# Include API routers
app.include_router(messages_router, prefix="/api/v1")
app.include_router(ws_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str | int]:
    """Health check endpoint to verify the service is running."""
    registry: ConnectionRegistry = app.state.connection_registry
    return {"status": "ok", "connections": registry.connection_count()}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "description": "Direct messaging API for the Numina fitness community",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "numina_social.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        ws_ping_interval=settings.ws_ping_interval_seconds,
        ws_ping_timeout=settings.ws_ping_timeout_seconds,
    )

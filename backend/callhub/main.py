"""
CallHub Realtime Backend - Main Application

This is the entry point for the FastAPI application.
It handles:
- REST API endpoints (auth, users, groups, DMs, calls)
- The realtime WebSocket channel (presence, signaling relay, call events)
- Optional Prometheus metrics and Redis presence mirror
"""
from contextlib import asynccontextmanager
import logging
from datetime import datetime, UTC
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from callhub import __version__
from callhub.api import router as api_router
from callhub.api.websocket import router as ws_router
from callhub.config.redis import close_redis
from callhub.config.settings import Settings, settings as default_settings
from callhub.container import build_services
from callhub.services.metrics import start_metrics_server
from callhub.services.status_service import RedisGetter

# Configure logging
logging.basicConfig(level=getattr(logging, default_settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events using the modern FastAPI pattern.
    """
    # === STARTUP ===
    logger.info("🚀 Starting CallHub realtime backend...")
    settings: Settings = app.state.services.settings

    if settings.METRICS_ENABLED:
        start_metrics_server(settings.METRICS_PORT)

    if settings.PRESENCE_MIRROR_ENABLED:
        logger.info("✅ Redis presence mirror enabled")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("🛑 Shutting down...")
    if settings.PRESENCE_MIRROR_ENABLED:
        await close_redis()


def create_app(
    settings: Optional[Settings] = None,
    redis_getter: Optional[RedisGetter] = None,
) -> FastAPI:
    """Build an application with its own registry, status table and stores."""
    settings = settings or default_settings

    app = FastAPI(
        title="CallHub Realtime Backend",
        description="Presence, WebRTC signaling relay and call orchestration",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = build_services(settings, redis_getter=redis_getter)

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=settings.CORS_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include REST API routes
    app.include_router(api_router, prefix="/api")

    # Include WebSocket routes
    app.include_router(ws_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "CallHub",
            "version": __version__,
            "status": "running"
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        manager = app.state.services.connection_manager
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
            "total_connections": manager.get_total_connections(),
        }

    return app


app = create_app()

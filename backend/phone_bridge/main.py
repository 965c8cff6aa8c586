"""
Phone Bridge Backend - Main Application

This is the entry point for the FastAPI application.
It handles:
- Signaling between the desktop plugin (receiver) and the phone (sender)
- Image persistence into the graph's asset folder
- Serving the sender page to the phone
"""
from contextlib import asynccontextmanager
import logging
from datetime import datetime, UTC

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from phone_bridge.api import router as api_router
from phone_bridge.api import sender
from phone_bridge.api.deps import get_session_registry
from phone_bridge.config.constants import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS
from phone_bridge.config.settings import settings
from phone_bridge.services.metrics import start_metrics_server
from phone_bridge.services.signaling import SessionRegistry, session_registry

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events using the modern FastAPI pattern.
    """
    # === STARTUP ===
    logger.info("🚀 Starting Phone Bridge Backend...")

    if settings.METRICS_PORT:
        start_metrics_server(port=settings.METRICS_PORT)

    if settings.GRAPH_PATH:
        logger.info(f"✅ Graph: {settings.GRAPH_PATH}")
    else:
        logger.warning("⚠️ No graph path - image saving disabled")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("🛑 Shutting down...")
    session_registry.close_all()


app = FastAPI(
    title="Phone Bridge Backend",
    description="Signaling relay and image bridge between a phone camera and a desktop plugin",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration: the plugin and the phone page run on other origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=CORS_ALLOW_METHODS,
    allow_headers=CORS_ALLOW_HEADERS,
)

# Include signaling and image routes
app.include_router(api_router)


@app.get("/health")
async def health(registry: SessionRegistry = Depends(get_session_registry)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "active_sessions": registry.active_session_count(),
        "total_streams": registry.total_streams()
    }


# Every other GET serves the sender page
app.include_router(sender.router)

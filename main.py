"""
VoiceRound - Real-time Voice Mock Interview Server

Main application entry point.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voiceround.config.settings import get_settings
from voiceround.api.router import api_router
from voiceround.api.dependencies import cleanup, evict_expired_sessions
from voiceround.api.endpoints.interview import ws_router

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Running in {'debug' if settings.debug else 'production'} mode")
    sweeper = asyncio.create_task(
        evict_expired_sessions(
            settings.eviction_interval_seconds,
            settings.session_retention_seconds,
        ),
        name="session-eviction",
    )

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass
    await cleanup()


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Real-time voice mock interview server",
    version=settings.app_version,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount API routes
app.include_router(api_router, prefix="/api")

# Interview WebSocket at /ws and /
app.include_router(ws_router)


# ============================================================================
# ROOT ROUTES
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "ok": True,
        "status": "healthy",
        "version": settings.app_version,
    }


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )

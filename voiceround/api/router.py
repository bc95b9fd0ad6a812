"""
Main API router for VoiceRound

Aggregates all HTTP API routes. The interview WebSocket is mounted
separately at the application root.
"""

from fastapi import APIRouter

from voiceround.api.endpoints import interview, metadata

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    interview.router,
    prefix="/interview",
    tags=["Interview"]
)

api_router.include_router(
    metadata.router,
    prefix="/metadata",
    tags=["Metadata"]
)

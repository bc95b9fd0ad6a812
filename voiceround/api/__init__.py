"""
API layer for VoiceRound

Contains FastAPI routers for:
- The interview WebSocket
- Session snapshots
- Reference metadata
"""

from voiceround.api.router import api_router

__all__ = ["api_router"]

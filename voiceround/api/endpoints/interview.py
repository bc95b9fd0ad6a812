"""
Interview API endpoints

Handles:
- The voice interview WebSocket (control JSON + binary audio)
- Read-only session snapshots
"""

import logging
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from voiceround.api.dependencies import get_orchestrator, get_registry
from voiceround.core.channel import ClientChannel
from voiceround.core.interview_orchestrator import InterviewOrchestrator
from voiceround.core.protocol import ProtocolDispatcher
from voiceround.core.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter()
ws_router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class SessionStatusResponse(BaseModel):
    """Snapshot of a registered session."""
    session_id: str
    phase: str
    turns_completed: int
    max_turns: int
    done: bool
    overall_score: float | None = None
    rubric: dict[str, Any] | None = None
    transcript: list[dict[str, str]]


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.get("/{session_id}", response_model=SessionStatusResponse)
async def get_session_status(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> SessionStatusResponse:
    """Get the current state of a session."""
    record = registry.get(session_id)
    if not record:
        raise HTTPException(status_code=404, detail="Session not found")

    return SessionStatusResponse(
        session_id=record.session_id,
        phase=record.phase.value,
        turns_completed=record.turns_completed,
        max_turns=record.config.max_turns,
        done=record.done,
        overall_score=record.overall_score if record.done else None,
        rubric=record.rubric.model_dump(mode="json") if record.rubric else None,
        transcript=record.transcript_payload(),
    )


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@ws_router.websocket("/ws")
@ws_router.websocket("/")
async def websocket_interview(
    websocket: WebSocket,
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
):
    """
    WebSocket endpoint for the voice interview.

    Text frames are JSON control messages, binary frames are answer audio.
    Frames are queued to the connection's dispatcher and handled strictly
    in arrival order.
    """
    await websocket.accept()

    channel = ClientChannel(websocket, name=f"ws-{uuid4().hex[:8]}")
    dispatcher = ProtocolDispatcher(orchestrator, channel)
    dispatcher.start()
    logger.info(f"Client connected: {channel.name}")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            if message.get("bytes") is not None:
                dispatcher.feed_binary(message["bytes"])
            elif message.get("text") is not None:
                dispatcher.feed_text(message["text"])

    except WebSocketDisconnect:
        # Client disconnected
        pass
    finally:
        await dispatcher.close()
        logger.info(f"Client disconnected: {channel.name}")

"""
API Dependencies

Provides dependency injection for API endpoints.
Manages singleton instances of core components.
"""

import asyncio
import logging

from voiceround.config.settings import get_settings
from voiceround.core.ai_reasoning import AIReasoningLayer
from voiceround.core.audio_processor import AudioProcessor
from voiceround.core.evaluation_engine import EvaluationEngine
from voiceround.core.interview_orchestrator import InterviewOrchestrator
from voiceround.core.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_orchestrator: InterviewOrchestrator | None = None
_registry: SessionRegistry | None = None


def get_registry() -> SessionRegistry:
    """Get the session registry singleton."""
    global _registry

    if _registry is None:
        _registry = SessionRegistry()

    return _registry


def get_orchestrator() -> InterviewOrchestrator:
    """
    Get the interview orchestrator singleton.

    Lazily initializes all required components.
    """
    global _orchestrator

    if _orchestrator is None:
        settings = get_settings()
        ai_reasoning = AIReasoningLayer(settings)
        audio_processor = AudioProcessor(settings)

        _orchestrator = InterviewOrchestrator(
            ai_reasoning=ai_reasoning,
            audio_processor=audio_processor,
            evaluation_engine=EvaluationEngine(ai_reasoning),
            registry=get_registry(),
            settings=settings,
        )

    return _orchestrator


async def evict_expired_sessions(interval_seconds: float, retention_seconds: float):
    """Periodically drop finished sessions past their retention window."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            get_registry().evict_expired(retention_seconds)
        except Exception:
            logger.exception("Session eviction sweep failed")


async def cleanup():
    """Cleanup resources on shutdown."""
    global _orchestrator, _registry

    if _orchestrator:
        await _orchestrator.audio_processor.close()
        await _orchestrator.ai_reasoning.close()

    _orchestrator = None
    _registry = None

"""
Core business logic modules for VoiceRound

Contains:
- Interview Orchestrator: Session state machine and turn flow
- AI Reasoning: Persona, greeting and follow-up generation
- Audio Processing: STT/TTS integration
- Evaluation Engine: Rubric scoring and summary
- Session Registry: Live session lookup and eviction
"""

from voiceround.core.interview_orchestrator import InterviewOrchestrator
from voiceround.core.ai_reasoning import AIReasoningLayer, UpstreamFailure
from voiceround.core.audio_processor import AudioProcessor
from voiceround.core.evaluation_engine import EvaluationEngine
from voiceround.core.session_registry import SessionRegistry
from voiceround.core.protocol import ProtocolDispatcher

__all__ = [
    "InterviewOrchestrator",
    "AIReasoningLayer",
    "UpstreamFailure",
    "AudioProcessor",
    "EvaluationEngine",
    "SessionRegistry",
    "ProtocolDispatcher",
]

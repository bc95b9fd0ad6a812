"""
Data models and schemas for VoiceRound

Contains Pydantic models for:
- Interview sessions and transcripts
- Evaluation results
- WebSocket protocol messages
- Round and language catalog
"""

from voiceround.models.session import (
    CONFIG_DEFAULTS,
    SessionConfig,
    SessionPhase,
    SessionRecord,
    Speaker,
    Utterance,
    format_history,
    resolve_config,
)
from voiceround.models.evaluation import (
    AnswerQuality,
    EvaluationResult,
    RubricResult,
    RUBRIC_AXES,
)
from voiceround.models.messages import (
    AudioEndMessage,
    AudioStartMessage,
    ErrorCode,
    StartMessage,
    StopMessage,
)
from voiceround.models.catalog import Round, LANGUAGE_NAMES, VOICES

__all__ = [
    # Session
    "CONFIG_DEFAULTS",
    "SessionConfig",
    "SessionPhase",
    "SessionRecord",
    "Speaker",
    "Utterance",
    "format_history",
    "resolve_config",
    # Evaluation
    "AnswerQuality",
    "EvaluationResult",
    "RubricResult",
    "RUBRIC_AXES",
    # Messages
    "AudioEndMessage",
    "AudioStartMessage",
    "ErrorCode",
    "StartMessage",
    "StopMessage",
    # Catalog
    "Round",
    "LANGUAGE_NAMES",
    "VOICES",
]

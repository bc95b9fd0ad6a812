"""
WebSocket protocol message models for VoiceRound

Inbound control frames are JSON objects discriminated by ``type``.
Binary frames carry raw audio and have no model.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ErrorCode(str, Enum):
    """Values of the ``error`` field in outbound error messages."""

    INVALID_JSON = "invalid_json"
    UNRECOGNIZED_TYPE = "unrecognized_type"
    SESSION_NOT_FOUND = "session_not_found"
    SERVER_EXCEPTION = "server_exception"


class InboundMessage(BaseModel):
    """Base for client control messages."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    session_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("sessionId", "session_id"),
    )


class StartMessage(InboundMessage):
    """Start a new interview session."""

    type: Literal["start"]
    language: str | None = None
    role: str | None = Field(
        default=None,
        validation_alias=AliasChoices("role", "roleName"),
    )
    level: str | None = None
    round: str | None = Field(
        default=None,
        validation_alias=AliasChoices("round", "selectedRound"),
    )
    max_turns: Any = Field(
        default=None,
        validation_alias=AliasChoices("maxTurns", "max_turns"),
    )
    candidate_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("candidateName", "candidate_name"),
    )
    voice: str | None = None
    job_context: str | None = Field(
        default=None,
        validation_alias=AliasChoices("jobContext", "job_context"),
    )
    focus_language: str | None = Field(
        default=None,
        validation_alias=AliasChoices("focusLanguage", "selectedLanguage", "focus_language"),
    )

    def explicit_config(self) -> dict[str, Any]:
        """Config values supplied by the client, keyed like SessionConfig."""
        return self.model_dump(exclude={"type", "session_id"}, exclude_none=True)


class AudioStartMessage(InboundMessage):
    """Marks the beginning of a spoken answer."""

    type: Literal["answer_audio_start"]
    format: str | None = None


class AudioEndMessage(InboundMessage):
    """Marks the end of a spoken answer."""

    type: Literal["answer_audio_end"]


class StopMessage(InboundMessage):
    """Ends the interview early and requests evaluation."""

    type: Literal["stop"]


INBOUND_MESSAGES: dict[str, type[InboundMessage]] = {
    "start": StartMessage,
    "answer_audio_start": AudioStartMessage,
    "answer_audio_end": AudioEndMessage,
    "stop": StopMessage,
}

"""
Session and transcript models for VoiceRound
"""

import asyncio
from datetime import datetime
from enum import Enum
from typing import Any, Mapping
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from voiceround.models.evaluation import EvaluationResult, RubricResult


class Speaker(str, Enum):
    """Who produced an utterance."""

    INTERVIEWER = "interviewer"
    CANDIDATE = "candidate"

    @property
    def label(self) -> str:
        return "Interviewer" if self is Speaker.INTERVIEWER else "Candidate"


class SessionPhase(str, Enum):
    """Session protocol state machine states."""

    INIT = "init"
    GREETING = "greeting"
    AWAITING_ANSWER = "awaiting_answer"
    EVALUATING = "evaluating"
    DONE = "done"


class Utterance(BaseModel):
    """One recorded turn of speech. Never mutated after append."""

    model_config = ConfigDict(frozen=True)

    speaker: Speaker = Field(..., serialization_alias="from")
    text: str


def format_history(transcript: list[Utterance]) -> str:
    """Transcript as "Speaker: text" lines for prompts."""
    return "\n".join(f"{u.speaker.label}: {u.text}" for u in transcript)


class SessionConfig(BaseModel):
    """Interview configuration, fixed once the session starts."""

    model_config = ConfigDict(frozen=True)

    candidate_name: str | None = None
    role: str
    level: str
    language: str
    round: str
    focus_language: str | None = None
    max_turns: int = Field(..., ge=1)
    voice: str
    job_context: str | None = None


# ============================================================================
# CONFIGURATION RESOLUTION
# ============================================================================

# Precedence for every field: explicit input > prior session > default.
CONFIG_DEFAULTS: dict[str, Any] = {
    "candidate_name": None,
    "role": "Software Engineer",
    "level": "junior",
    "language": "en",
    "round": "technical",
    "focus_language": "java",
    "max_turns": 6,
    "voice": "alloy",
    "job_context": None,
}


def _is_set(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def _coerce_max_turns(value: Any, limit: int) -> int | None:
    try:
        turns = int(value)
    except OverflowError:
        # infinite floats such as 1e999
        return limit if value > 0 else 1
    except (TypeError, ValueError):
        return None
    return max(1, min(turns, limit))


def resolve_config(
    explicit: Mapping[str, Any],
    prior: SessionConfig | None = None,
    defaults: Mapping[str, Any] | None = None,
    max_turns_limit: int = 20,
) -> SessionConfig:
    """
    Resolve a complete session configuration.

    Every field in CONFIG_DEFAULTS is resolved independently: a non-empty
    explicit value wins, then the value from the prior session on the same
    connection, then the default. Strings are stripped. max_turns is
    coerced to an int and clamped to [1, max_turns_limit]; an unparseable
    value falls through to the next source.

    Args:
        explicit: Values supplied by the client (snake_case keys)
        prior: Configuration of the previous session, if any
        defaults: Default table overriding CONFIG_DEFAULTS entries
        max_turns_limit: Upper bound for max_turns

    Returns:
        Fully populated SessionConfig
    """
    table = {**CONFIG_DEFAULTS, **(defaults or {})}
    prior_values = prior.model_dump() if prior else {}
    resolved: dict[str, Any] = {}

    for key, default in table.items():
        value = default
        for source in (explicit, prior_values):
            candidate = source.get(key)
            if not _is_set(candidate):
                continue
            if key == "max_turns":
                candidate = _coerce_max_turns(candidate, max_turns_limit)
                if candidate is None:
                    continue
            elif isinstance(candidate, str):
                candidate = candidate.strip()
            else:
                candidate = str(candidate)
            value = candidate
            break
        resolved[key] = value

    resolved["max_turns"] = _coerce_max_turns(resolved["max_turns"], max_turns_limit) or 1
    return SessionConfig(**resolved)


# ============================================================================
# SESSION RECORD
# ============================================================================

class SessionRecord(BaseModel):
    """
    Aggregate state for one interview.

    Mutable fields (transcript, turns_completed, done, phase) are only
    changed while holding ``lock``. ``done`` moves from False to True
    exactly once, through claim_evaluation() followed by complete().
    """

    session_id: str = Field(default_factory=lambda: str(uuid4()))
    config: SessionConfig

    transcript: list[Utterance] = Field(default_factory=list)
    turns_completed: int = 0
    done: bool = False
    overall_score: float = 0.0
    persona: str | None = None
    phase: SessionPhase = SessionPhase.INIT
    rubric: RubricResult | None = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: datetime | None = None

    _lock: asyncio.Lock = PrivateAttr(default_factory=asyncio.Lock)
    _claimed_from: SessionPhase | None = PrivateAttr(default=None)

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    @property
    def is_closed(self) -> bool:
        """True once evaluation has been claimed; no more turns are taken."""
        return self.done or self.phase in (SessionPhase.EVALUATING, SessionPhase.DONE)

    def set_persona(self, text: str) -> None:
        if self.persona is not None:
            raise ValueError("persona is already set")
        self.persona = text

    def append(self, speaker: Speaker, text: str) -> Utterance:
        """Append an utterance to the transcript."""
        utterance = Utterance(speaker=speaker, text=text)
        self.transcript.append(utterance)
        return utterance

    def transcript_payload(self) -> list[dict[str, str]]:
        """Transcript in wire form: [{"from": ..., "text": ...}]."""
        return [u.model_dump(mode="json", by_alias=True) for u in self.transcript]

    async def claim_evaluation(self) -> bool:
        """
        Atomically claim the transition into EVALUATING.

        Returns True for exactly one caller per session; every other
        caller (a racing stop, a late answer) gets False and must do
        nothing.
        """
        async with self._lock:
            if self.is_closed:
                return False
            self._claimed_from = self.phase
            self.phase = SessionPhase.EVALUATING
            return True

    async def abandon_evaluation(self) -> None:
        """Undo a claim whose evaluation crashed, restoring the prior phase."""
        async with self._lock:
            if self.done or self.phase is not SessionPhase.EVALUATING:
                return
            self.phase = self._claimed_from or SessionPhase.AWAITING_ANSWER
            self._claimed_from = None

    def complete(self, evaluation: EvaluationResult) -> None:
        """Record the evaluation and enter DONE. Caller holds the lock."""
        if self.done:
            raise ValueError(f"session {self.session_id} is already done")
        self.rubric = evaluation.rubric
        self.overall_score = evaluation.overall_score
        self.done = True
        self.phase = SessionPhase.DONE
        self.completed_at = datetime.utcnow()

"""
Evaluation Engine for VoiceRound

Produces the single end-of-interview evaluation:
- A structured rubric (five 0-10 axes, quality tag, notes)
- A free-text spoken summary

The rubric and summary requests are independent reads of the same
transcript and are issued concurrently, then joined.
"""

import asyncio
import json
import logging
from typing import Any

from voiceround.core.ai_reasoning import UpstreamFailure
from voiceround.models.evaluation import (
    AXIS_DEFAULT,
    RUBRIC_AXES,
    AnswerQuality,
    EvaluationResult,
    RubricResult,
    clamp_axis,
)
from voiceround.models.session import SessionConfig, Utterance
from voiceround.prompts.evaluator import EvaluatorPrompts, InterviewStats

logger = logging.getLogger(__name__)


FALLBACK_SUMMARY = (
    "Thank you for your time today. We were unable to produce a detailed "
    "summary of this interview, but your answers have been recorded."
)


def _extract_json_object(response: str) -> dict[str, Any] | None:
    """Parse the outermost {...} in a model response, if any."""
    json_start = response.find("{")
    json_end = response.rfind("}") + 1
    if json_start < 0 or json_end <= json_start:
        return None
    try:
        data = json.loads(response[json_start:json_end])
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse rubric JSON: {e}")
        return None
    return data if isinstance(data, dict) else None


def _parse_axis(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def parse_rubric(response: str | None, stats: InterviewStats) -> RubricResult:
    """
    Build a RubricResult from a model response.

    Each axis is taken independently: values that are missing or not
    numeric default to the midpoint, and every value is clamped into
    [0, 10]. A response with no parseable JSON yields all defaults.
    """
    data = _extract_json_object(response or "") or {}

    axes: dict[str, float] = {}
    for axis in RUBRIC_AXES:
        value = _parse_axis(data.get(axis))
        if value is None:
            if data:
                logger.debug(f"Rubric axis '{axis}' missing or invalid, defaulting")
            value = AXIS_DEFAULT
        axes[axis] = clamp_axis(value)

    try:
        quality = AnswerQuality(str(data.get("answer_quality", "fair")).strip().lower())
    except ValueError:
        quality = AnswerQuality.FAIR

    notes = data.get("notes")
    return RubricResult(
        **axes,
        answer_quality=quality,
        notes=notes if isinstance(notes, str) and notes.strip() else "Evaluation in progress.",
        questions_answered=stats.answers_given,
        total_questions=stats.questions_asked,
    )


class EvaluationEngine:
    """
    Central evaluation component.

    Responsibilities:
    - Derive interview statistics from the transcript
    - Run rubric and summary generation concurrently
    - Default anything the model gets wrong
    """

    RUBRIC_TEMPERATURE = 0.1
    SUMMARY_TEMPERATURE = 0.2

    def __init__(self, ai_reasoning: Any):
        """
        Initialize evaluation engine.

        Args:
            ai_reasoning: Provides chat(messages, temperature, ...)
        """
        self.ai_reasoning = ai_reasoning
        self.prompts = EvaluatorPrompts()

    async def evaluate(
        self,
        config: SessionConfig,
        transcript: list[Utterance],
        session_id: str | None = None,
    ) -> EvaluationResult:
        """
        Evaluate a finished (or stopped) interview.

        Args:
            config: Session configuration
            transcript: Snapshot of the transcript to evaluate
            session_id: Session ID for logging and tracing

        Returns:
            EvaluationResult; never raises for upstream failures
        """
        stats = InterviewStats.from_transcript(list(transcript))

        rubric_response, summary_response = await asyncio.gather(
            self.ai_reasoning.chat(
                self.prompts.rubric_prompt(config, stats),
                temperature=self.RUBRIC_TEMPERATURE,
                trace_name="evaluation_rubric",
                session_id=session_id,
            ),
            self.ai_reasoning.chat(
                self.prompts.summary_prompt(config, stats),
                temperature=self.SUMMARY_TEMPERATURE,
                trace_name="evaluation_summary",
                session_id=session_id,
            ),
            return_exceptions=True,
        )

        if isinstance(rubric_response, BaseException):
            if not isinstance(rubric_response, UpstreamFailure):
                raise rubric_response
            logger.warning(f"Rubric generation failed, using defaults: {rubric_response}")
            rubric_response = None

        if isinstance(summary_response, BaseException):
            if not isinstance(summary_response, UpstreamFailure):
                raise summary_response
            logger.warning(f"Summary generation failed, using fallback: {summary_response}")
            summary_response = None

        rubric = parse_rubric(rubric_response, stats)
        summary_text = (summary_response or "").strip() or FALLBACK_SUMMARY

        logger.info(
            f"Evaluation complete for session {session_id}: total={rubric.total:.1f}, "
            f"answered={stats.answers_given}/{stats.questions_asked}"
        )
        return EvaluationResult(rubric=rubric, summary_text=summary_text)

"""
Evaluation models for VoiceRound

Defines the rubric produced once per session at the end of the interview.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


RUBRIC_AXES: tuple[str, ...] = (
    "communication",
    "technical",
    "problem_solving",
    "relevance",
    "confidence",
)

AXIS_MIN = 0.0
AXIS_MAX = 10.0
AXIS_DEFAULT = 5.0  # midpoint used when an axis cannot be parsed


class AnswerQuality(str, Enum):
    """Qualitative answer quality tag."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


def clamp_axis(value: float) -> float:
    """Clamp a rubric axis into [AXIS_MIN, AXIS_MAX]."""
    return max(AXIS_MIN, min(AXIS_MAX, float(value)))


class RubricResult(BaseModel):
    """Axis-scored outcome of the final evaluation."""

    model_config = ConfigDict(frozen=True)

    # Core dimensions (each 0-10)
    communication: float = Field(default=AXIS_DEFAULT, ge=AXIS_MIN, le=AXIS_MAX)
    technical: float = Field(default=AXIS_DEFAULT, ge=AXIS_MIN, le=AXIS_MAX)
    problem_solving: float = Field(default=AXIS_DEFAULT, ge=AXIS_MIN, le=AXIS_MAX)
    relevance: float = Field(default=AXIS_DEFAULT, ge=AXIS_MIN, le=AXIS_MAX)
    confidence: float = Field(default=AXIS_DEFAULT, ge=AXIS_MIN, le=AXIS_MAX)

    # Qualitative
    answer_quality: AnswerQuality = AnswerQuality.FAIR
    notes: str = "Evaluation in progress."

    # Interview statistics
    questions_answered: int = 0
    total_questions: int = 0

    @computed_field
    @property
    def total(self) -> float:
        """Sum of the five axes, in [0, 50]."""
        return sum(getattr(self, axis) for axis in RUBRIC_AXES)


class EvaluationResult(BaseModel):
    """Combined result of the rubric and summary calls."""

    rubric: RubricResult
    summary_text: str

    @property
    def overall_score(self) -> float:
        return self.rubric.total

"""
Interview catalog for VoiceRound

Reference data used to enrich prompts:
- Interview rounds and their focus areas
- Spoken language names
- Synthesis voices

Round and language values stay opaque to the session core; anything
not listed here is passed through unchanged.
"""

from enum import Enum


class Round(str, Enum):
    """Known interview round types."""

    TECHNICAL = "technical"
    HR = "hr"
    MANAGERIAL = "managerial"
    SYSTEM_DESIGN = "system-design"
    CODING = "coding"

    @property
    def display_name(self) -> str:
        """Human-readable round name."""
        names = {
            "technical": "Technical Round",
            "hr": "HR Round",
            "managerial": "Managerial Round",
            "system-design": "System Design Round",
            "coding": "Coding Round",
        }
        return names.get(self.value, self.value)

    @property
    def focus(self) -> str:
        """What the interviewer should probe in this round."""
        focus_areas = {
            "technical": "technical skills, problem-solving, coding abilities, algorithms, data structures, and technical depth",
            "hr": "behavioral questions, communication skills, cultural fit, soft skills, team collaboration, and work experience",
            "managerial": "leadership, management experience, strategic thinking, decision-making, team management, and conflict resolution",
            "system-design": "architecture design, scalability, system planning, distributed systems, technical architecture, and trade-offs",
            "coding": "live coding, algorithms, data structures, problem-solving, code quality, and optimization",
        }
        return focus_areas.get(self.value, "relevant skills")


GENERIC_ROUND_FOCUS = "relevant skills"

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "hi": "Hindi",
    "te": "Telugu",
    "ta": "Tamil",
    "fr": "French",
}

VOICES: list[str] = ["alloy", "echo", "fable", "onyx", "nova", "shimmer"]


def round_display_name(round_id: str | None) -> str | None:
    """Display name for a round id, or the id itself when unknown."""
    if not round_id:
        return None
    try:
        return Round(round_id).display_name
    except ValueError:
        return round_id


def round_focus(round_id: str | None) -> str:
    """Focus description for a round id."""
    try:
        return Round(round_id).focus
    except ValueError:
        return GENERIC_ROUND_FOCUS


def language_name(code: str | None) -> str:
    """Human-readable language name for a language code."""
    code = code or "en"
    return LANGUAGE_NAMES.get(code, code)

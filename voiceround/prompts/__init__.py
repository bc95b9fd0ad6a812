"""
AI prompt templates for VoiceRound

Contains structured prompts for:
- Persona, greeting, and interviewer turns
- Final rubric and summary evaluation
"""

from voiceround.prompts.interviewer import InterviewerPrompts
from voiceround.prompts.evaluator import EvaluatorPrompts, InterviewStats

__all__ = [
    "InterviewerPrompts",
    "EvaluatorPrompts",
    "InterviewStats",
]

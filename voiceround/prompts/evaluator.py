"""
AI Evaluator Prompt Templates

Contains chat prompts for the end-of-interview evaluation:
- Structured rubric (JSON, five 0-10 axes)
- Free-text spoken summary with a hiring recommendation

Both prompts are built from the same InterviewStats so the two calls
can run concurrently over one snapshot of the transcript.
"""

from dataclasses import dataclass, field

from voiceround.models.session import SessionConfig, Speaker, Utterance, format_history


Message = dict[str, str]


@dataclass
class InterviewStats:
    """Counts and Q&A pairs derived from a transcript."""

    questions_asked: int
    answers_given: int
    conversation: str
    qa_pairs: list[tuple[str, str]] = field(default_factory=list)

    @property
    def completion_rate(self) -> int:
        if self.questions_asked <= 0:
            return 0
        return round(self.answers_given / self.questions_asked * 100)

    @classmethod
    def from_transcript(cls, transcript: list[Utterance]) -> "InterviewStats":
        interviewer = [u for u in transcript if u.speaker is Speaker.INTERVIEWER]
        candidate = [u for u in transcript if u.speaker is Speaker.CANDIDATE]

        # Pair each candidate answer with the interviewer line before it
        pairs: list[tuple[str, str]] = []
        current_question = None
        for utterance in transcript:
            if utterance.speaker is Speaker.INTERVIEWER:
                current_question = utterance.text
            elif current_question is not None:
                pairs.append((current_question, utterance.text))
                current_question = None

        return cls(
            questions_asked=max(0, len(interviewer) - 1),  # greeting excluded
            answers_given=len(candidate),
            conversation=format_history(transcript),
            qa_pairs=pairs,
        )


class EvaluatorPrompts:
    """
    Prompt templates for the final evaluation.

    Key principles:
    - Strict, rubric-based scoring
    - Account for unanswered questions
    - Consider level expectations
    """

    def _context_info(self, config: SessionConfig, stats: InterviewStats) -> str:
        lines = [
            "Interview Context:",
            f"- Role: {config.role} ({config.level} level)",
            f"- Questions Asked: {stats.questions_asked}",
            f"- Answers Given: {stats.answers_given}",
            f"- Completion Rate: {stats.completion_rate}%",
        ]
        if config.focus_language:
            lines.append(f"- Programming Language Focus: {config.focus_language}")
        if config.round:
            lines.append(f"- Interview Round: {config.round}")
        return "\n".join(lines)

    def rubric_prompt(self, config: SessionConfig, stats: InterviewStats) -> list[Message]:
        """Prompt for the JSON rubric."""
        system = f"""You are a STRICT and experienced interviewer evaluating a candidate.

{self._context_info(config, stats)}

You must evaluate STRICTLY based on:
1. How many questions were answered ({stats.answers_given} out of {stats.questions_asked})
2. Quality and correctness of each answer
3. Technical depth and accuracy
4. Communication clarity
5. Problem-solving approach
6. Relevance to the role
7. Confidence and articulation

Deduct points for incomplete, incorrect, or vague answers. Consider the {config.level} level expectations.

Return ONLY a JSON object:
{{
  "communication": n (0-10, strict),
  "technical": n (0-10, strict),
  "problem_solving": n (0-10, strict),
  "relevance": n (0-10, strict),
  "confidence": n (0-10, strict),
  "answer_quality": "excellent/good/fair/poor",
  "notes": "Detailed evaluation in {config.language}: what was right or wrong, strengths and weaknesses"
}}"""

        qa = "\n\n".join(
            f"Q{i}: {q}\nA{i}: {a}" for i, (q, a) in enumerate(stats.qa_pairs, start=1)
        )
        user = f"Full Conversation Transcript:\n\n{stats.conversation}\n\nQ&A Pairs Analysis:\n{qa}"

        return [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

    def summary_prompt(self, config: SessionConfig, stats: InterviewStats) -> list[Message]:
        """Prompt for the spoken summary."""
        system = f"""You are a STRICT HR recruiter evaluating a candidate.

{self._context_info(config, stats)}

Provide a STRICT evaluation in {config.language}:
1. Start with how many questions were answered ({stats.answers_given}/{stats.questions_asked})
2. Analyze answer quality and correctness
3. Highlight specific strengths and weaknesses
4. End with a clear recommendation: "Recommendation: Hire / Maybe / No Hire"

Be honest and strict. 5-8 sentences."""

        qa = "\n\n".join(
            f"Question {i}: {q}\nAnswer {i}: {a}\n---"
            for i, (q, a) in enumerate(stats.qa_pairs, start=1)
        )
        user = f"Full Conversation:\n\n{stats.conversation}\n\nDetailed Q&A:\n{qa}"

        return [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

"""
AI Interviewer Prompt Templates

Contains chat prompts for:
- Persona (style directive) generation
- Greeting
- Conversational interviewer turns

The interviewer speaks; nothing here is shown as question text to the
candidate, so every prompt forbids speaker labels in the output.
"""

from voiceround.models.catalog import language_name, round_display_name, round_focus
from voiceround.models.session import SessionConfig


Message = dict[str, str]


class InterviewerPrompts:
    """
    Prompt templates for the AI interviewer.

    Key principles:
    - Respond only in the session language
    - Short, spoken-style output
    - Never prefix output with a speaker label
    """

    NO_LABEL_RULE = (
        "CRITICAL RULE: You must NEVER start your response with the word 'Interviewer' "
        "or 'Interviewer:' or any speaker label. Always start directly with your "
        "question or statement."
    )

    FALLBACK_PERSONA = (
        "You are a friendly, professional interviewer. Be concise, ask one relevant "
        "follow-up question at a time, and build on the candidate's previous answers."
    )

    def _language_rule(self, config: SessionConfig) -> str:
        name = language_name(config.language)
        return (
            f"CRITICAL LANGUAGE REQUIREMENT: You MUST respond in {name} "
            f"(language code: {config.language}). Every word you generate must be in {name}."
        )

    def _interview_context(self, config: SessionConfig) -> str:
        context = f"{config.level} {config.role} interview"
        if config.focus_language:
            context += f" focusing on {config.focus_language}"
        round_name = round_display_name(config.round)
        if round_name:
            context += f" for {round_name}"
        return context

    def _job_context(self, config: SessionConfig) -> str:
        if not config.job_context:
            return ""
        return f"\nJob context provided by the candidate:\n{config.job_context}\n"

    def persona_prompt(self, config: SessionConfig) -> list[Message]:
        """Prompt for a 2-3 sentence interviewer persona."""
        round_name = round_display_name(config.round)
        focus = round_focus(config.round)

        content = f"""You are an interviewer. Generate a short interviewer persona.

{self._language_rule(config)}

Context: {self._interview_context(config)}. This is a {round_name}, so focus on {focus}.
{self._job_context(config)}
Keep it to 2-3 sentences. Include tone/style + 1-2 rules (be concise, ask relevant follow-ups).

IMPORTANT:
- Respond ONLY in {language_name(config.language)}.
- The persona should NOT instruct to use "Interviewer:" prefix or any speaker labels."""

        return [{"role": "user", "content": content}]

    def greeting_prompt(self, config: SessionConfig) -> list[Message]:
        """Prompt for the opening greeting that asks for an introduction."""
        if config.candidate_name:
            greet = f"Greet the candidate by name ({config.candidate_name}) and"
        else:
            greet = "Greet the candidate and"
        round_name = round_display_name(config.round)
        name = language_name(config.language)

        content = f"""You are a professional interviewer. {greet} briefly in {name} (language code: {config.language}).

{self._language_rule(config)}

2 sentences max. Mention role ({config.role}) and level ({config.level}). Mention that this is a {round_name}. Ask them to introduce themselves in ~30 seconds before we begin.

{self.NO_LABEL_RULE}"""

        return [{"role": "system", "content": content}]

    def fallback_greeting(self, config: SessionConfig) -> str:
        """Greeting used when generation fails."""
        who = f", {config.candidate_name}" if config.candidate_name else ""
        round_name = round_display_name(config.round)
        return (
            f"Hello{who}, welcome to your {round_name} for the {config.level} "
            f"{config.role} position. Please introduce yourself in about 30 seconds."
        )

    def turn_prompt(
        self,
        config: SessionConfig,
        persona: str | None,
        history: str,
    ) -> list[Message]:
        """Prompt for the next conversational interviewer turn (20-60 words)."""
        round_name = round_display_name(config.round)
        focus = round_focus(config.round)
        system = f"{persona or self.FALLBACK_PERSONA} {self.NO_LABEL_RULE}"

        content = f"""Conversation so far:
{history or "(no previous messages)"}

{self._language_rule(config)}
{self._job_context(config)}
Now continue as the interviewer for a {config.level} {config.role} interview ({round_name}).
This is a {round_name} interview. Focus specifically on {focus}.

Be natural: you may briefly acknowledge their answer (1 short sentence) and ask a focused follow-up that is relevant to {focus}.
Keep it concise (20-60 words). One paragraph.

{self.NO_LABEL_RULE}"""

        return [
            {"role": "system", "content": system},
            {"role": "user", "content": content},
        ]

    def fallback_turn(self, config: SessionConfig) -> str:
        """Follow-up used when generation fails."""
        return (
            "Thank you. Could you walk me through a recent project you worked on, "
            "the main challenge you faced, and how you solved it?"
        )

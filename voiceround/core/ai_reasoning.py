"""
AI Reasoning Layer for VoiceRound

Handles all text-generation operations:
- Persona generation (once per session)
- Greeting
- Conversational interviewer turns
- Raw chat calls used by the evaluation engine

Talks to an OpenAI-compatible chat completions endpoint. Every call is
single-attempt; callers substitute a fallback on UpstreamFailure.
Integrated with Langfuse for observability and tracing.
"""

import logging
import re
from contextlib import contextmanager
from typing import Any, Iterator

import httpx
from langfuse import Langfuse

from voiceround.config.settings import Settings, get_settings
from voiceround.models.session import SessionConfig, Utterance, format_history
from voiceround.prompts.interviewer import InterviewerPrompts

logger = logging.getLogger(__name__)


class UpstreamFailure(Exception):
    """A collaborator (LLM, STT, TTS) failed or returned unusable output."""
    pass


# Leading speaker labels the model sometimes adds despite instructions,
# e.g. "Interviewer:", "Interviewer -", "(Interviewer)", "\"Interviewer.".
_SPEAKER_LABEL = re.compile(
    r"""^\s*["'(\[]?\s*interviewer\b\s*[)\]]?\s*[:.\-]*\s*""",
    re.IGNORECASE,
)


def strip_speaker_label(text: str) -> str:
    """Remove any leading 'Interviewer' label from generated speech."""
    cleaned = (text or "").strip()
    while True:
        stripped = _SPEAKER_LABEL.sub("", cleaned, count=1).strip()
        if stripped == cleaned:
            return cleaned
        cleaned = stripped


class AIReasoningLayer:
    """
    Central text-generation component.

    Temperatures:
    - Persona / greeting: 0.6
    - Interviewer turns: 0.7
    - Rubric / summary: set by the evaluation engine (0.1 / 0.2)

    Observability:
    - Langfuse integration for tracing all LLM calls
    """

    PERSONA_TEMPERATURE = 0.6
    GREETING_TEMPERATURE = 0.6
    TURN_TEMPERATURE = 0.7

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize AI reasoning layer.

        Args:
            settings: Application settings (defaults to cached settings)
            client: Preconfigured HTTP client, mainly for tests
        """
        self.settings = settings or get_settings()
        self.client = client or httpx.AsyncClient(
            base_url=self.settings.llm_base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {self.settings.llm_api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.settings.llm_timeout_seconds,
        )
        self.prompts = InterviewerPrompts()

        self.langfuse = None
        if self.settings.langfuse_enabled:
            if self.settings.langfuse_secret_key and self.settings.langfuse_public_key:
                try:
                    self.langfuse = Langfuse(
                        secret_key=self.settings.langfuse_secret_key,
                        public_key=self.settings.langfuse_public_key,
                        host=self.settings.langfuse_base_url,
                    )
                    logger.info("Langfuse initialized for LLM observability")
                except Exception as e:
                    logger.warning(f"Failed to initialize Langfuse: {e}")
            else:
                logger.info("Langfuse keys not configured, tracing disabled")

    async def close(self):
        """Close the HTTP client and flush Langfuse."""
        await self.client.aclose()
        if self.langfuse:
            try:
                self.langfuse.flush()
            except Exception as e:
                logger.warning(f"Failed to flush Langfuse: {e}")

    # =========================================================================
    # TRACING
    # =========================================================================

    @contextmanager
    def _trace(self, name: str, metadata: dict[str, Any] | None = None) -> Iterator[Any]:
        span = None
        if self.langfuse:
            try:
                span = self.langfuse.start_span(name=name, metadata=metadata or {})
            except Exception as lf_err:
                logger.warning(f"Langfuse span start failed: {lf_err}")
        try:
            yield span
        finally:
            if span:
                try:
                    span.end()
                except Exception as lf_err:
                    logger.warning(f"Langfuse span end failed: {lf_err}")

    def record_score(self, session_id: str, value: float) -> None:
        """Send the final overall score to Langfuse, if enabled."""
        if not self.langfuse:
            return
        try:
            self.langfuse.create_score(
                name="overall_score",
                value=value,
                comment=f"Session: {session_id}",
            )
        except Exception as lf_err:
            logger.warning(f"Langfuse score failed: {lf_err}")

    # =========================================================================
    # CORE AI OPERATIONS
    # =========================================================================

    def _extract_content(self, result: dict) -> str:
        """Extract text content from API response, handling list/dict formats."""
        content = result.get("choices", [{}])[0].get("message", {}).get("content", "")

        # Handle case where content is a list (multi-part response)
        if isinstance(content, list):
            text_parts = []
            for part in content:
                if isinstance(part, str):
                    text_parts.append(part)
                elif isinstance(part, dict) and "text" in part:
                    text_parts.append(part["text"])
            content = "".join(text_parts)

        return content if isinstance(content, str) else str(content or "")

    async def chat(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.5,
        trace_name: str = "chat_completion",
        session_id: str | None = None,
    ) -> str:
        """
        Run one chat completion.

        Args:
            messages: Chat messages
            temperature: Sampling temperature
            trace_name: Name for the Langfuse span
            session_id: Interview session ID for trace grouping

        Returns:
            Stripped response text (never empty)

        Raises:
            UpstreamFailure: On transport errors, bad payloads, or empty output
        """
        payload = {
            "model": self.settings.llm_model,
            "temperature": temperature,
            "messages": messages,
        }

        with self._trace(trace_name, {"session_id": session_id}) as span:
            try:
                response = await self.client.post("/chat/completions", json=payload)
                response.raise_for_status()
                content = self._extract_content(response.json())
            except httpx.HTTPError as e:
                logger.error(f"Chat completion error ({trace_name}): {e}")
                raise UpstreamFailure(str(e)) from e
            except (ValueError, KeyError, IndexError, AttributeError) as e:
                logger.error(f"Malformed chat completion payload ({trace_name}): {e}")
                raise UpstreamFailure(str(e)) from e

            content = content.strip()
            if not content:
                raise UpstreamFailure(f"{trace_name}: empty completion")

            if span:
                try:
                    span.update(output=content[:500])
                except Exception:
                    pass

            return content

    # =========================================================================
    # INTERVIEW GENERATION
    # =========================================================================

    async def generate_persona(self, config: SessionConfig, session_id: str | None = None) -> str:
        """
        Generate the interviewer persona used as context for every turn.

        Falls back to a fixed persona so the interview always proceeds.
        """
        try:
            persona = await self.chat(
                self.prompts.persona_prompt(config),
                temperature=self.PERSONA_TEMPERATURE,
                trace_name="persona",
                session_id=session_id,
            )
            logger.info(f"Generated persona for session {session_id} ({len(persona)} chars)")
            return persona
        except UpstreamFailure as e:
            logger.warning(f"Persona generation failed, using fallback: {e}")
            return self.prompts.FALLBACK_PERSONA

    async def generate_greeting(self, config: SessionConfig, session_id: str | None = None) -> str:
        """Generate the opening greeting asking the candidate to introduce themselves."""
        try:
            content = await self.chat(
                self.prompts.greeting_prompt(config),
                temperature=self.GREETING_TEMPERATURE,
                trace_name="greeting",
                session_id=session_id,
            )
        except UpstreamFailure as e:
            logger.warning(f"Greeting generation failed, using fallback: {e}")
            return self.prompts.fallback_greeting(config)

        greeting = strip_speaker_label(content)
        return greeting or self.prompts.fallback_greeting(config)

    async def generate_turn(
        self,
        config: SessionConfig,
        persona: str | None,
        transcript: list[Utterance],
        session_id: str | None = None,
    ) -> str:
        """
        Generate the interviewer's next conversational turn.

        May briefly acknowledge the last answer before asking a focused
        follow-up (20-60 words, session language).
        """
        history = format_history(transcript)
        try:
            content = await self.chat(
                self.prompts.turn_prompt(config, persona, history),
                temperature=self.TURN_TEMPERATURE,
                trace_name="interviewer_turn",
                session_id=session_id,
            )
        except UpstreamFailure as e:
            logger.warning(f"Turn generation failed, using fallback: {e}")
            return self.prompts.fallback_turn(config)

        turn = strip_speaker_label(content)
        logger.info(f"Generated interviewer turn for session {session_id}: '{turn[:80]}'")
        return turn or self.prompts.fallback_turn(config)

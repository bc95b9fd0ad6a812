"""
Interview Orchestrator - State machine for one voice interview session.

Drives a SessionRecord through its phases:

    INIT → GREETING → AWAITING_ANSWER (loop) → EVALUATING → DONE

and coordinates the collaborators (AI reasoning, audio processing,
evaluation, outbound streaming). Connection concerns such as parsing,
buffering and message ordering live in core.protocol.

Exactly-once evaluation: both the turn-exhaustion path and the stop path
go through SessionRecord.claim_evaluation(), a check-and-set under the
record lock. The loser becomes a no-op. Work that was in flight when the
session closed is dropped instead of being appended.
"""

import logging
from typing import Any

from voiceround.config.settings import Settings, get_settings
from voiceround.core.ai_reasoning import UpstreamFailure
from voiceround.core.audio_streamer import OutboundAudioStreamer
from voiceround.core.channel import ClientChannel
from voiceround.core.session_registry import SessionRegistry
from voiceround.core.turn_controller import should_continue
from voiceround.models.messages import StartMessage
from voiceround.models.session import (
    SessionConfig,
    SessionPhase,
    SessionRecord,
    Speaker,
    resolve_config,
)

logger = logging.getLogger(__name__)


NO_SPEECH_SENTINEL = "(no speech recognized)"


class InterviewOrchestrator:
    """
    Manages the interview lifecycle using a state machine pattern.

    The orchestrator coordinates between:
    - AI Reasoning Layer (persona, greeting, interviewer turns)
    - Audio Processing (STT, TTS)
    - Evaluation Engine (rubric + summary)
    - Session Registry
    """

    def __init__(
        self,
        ai_reasoning: Any,  # AIReasoningLayer
        audio_processor: Any,  # AudioProcessor
        evaluation_engine: Any,  # EvaluationEngine
        registry: SessionRegistry | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize the orchestrator with component dependencies.

        Args:
            ai_reasoning: Text generation for persona, greeting and turns
            audio_processor: Speech-to-text and speech synthesis
            evaluation_engine: Final evaluation
            registry: Session storage (in-memory)
            settings: Application settings
        """
        self.settings = settings or get_settings()
        self.ai_reasoning = ai_reasoning
        self.audio_processor = audio_processor
        self.evaluation_engine = evaluation_engine
        self.registry = registry if registry is not None else SessionRegistry()
        self.streamer = OutboundAudioStreamer(
            audio_processor,
            chunk_bytes=self.settings.tts_chunk_bytes,
            default_format=self.settings.tts_format,
        )

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    def create_session(
        self,
        message: StartMessage,
        prior: SessionConfig | None = None,
    ) -> SessionRecord:
        """
        Resolve configuration and register a new session in INIT.

        Args:
            message: The client's start message
            prior: Config of the previous session on the same connection

        Returns:
            The registered SessionRecord
        """
        config = resolve_config(
            message.explicit_config(),
            prior=prior,
            defaults={
                "max_turns": self.settings.default_max_turns,
                "voice": self.settings.tts_voice,
            },
            max_turns_limit=self.settings.max_turns_limit,
        )
        record = SessionRecord(config=config)
        self.registry.create(record)

        logger.info(
            f"Created session {record.session_id}: role={config.role}, level={config.level}, "
            f"language={config.language}, round={config.round}, max_turns={config.max_turns}"
        )
        return record

    async def open_session(self, channel: ClientChannel, record: SessionRecord) -> None:
        """
        INIT → GREETING → AWAITING_ANSWER.

        Sends the session id, generates the persona, then speaks the
        greeting and records it as the first utterance.
        """
        async with record.lock:
            if record.phase is not SessionPhase.INIT:
                logger.warning(f"Session {record.session_id} already opened")
                return
            record.phase = SessionPhase.GREETING

        await channel.send_json({"type": "session", "sessionId": record.session_id})

        persona = await self.ai_reasoning.generate_persona(record.config, session_id=record.session_id)
        record.set_persona(persona)
        await channel.send_json({"type": "persona", "text": persona})

        greeting = await self.ai_reasoning.generate_greeting(record.config, session_id=record.session_id)
        await self.streamer.speak(channel, greeting, voice=record.config.voice)

        async with record.lock:
            if record.is_closed:
                logger.info(f"Session {record.session_id} closed during greeting, dropping it")
                return
            record.append(Speaker.INTERVIEWER, greeting)
            record.phase = SessionPhase.AWAITING_ANSWER
            transcript = record.transcript_payload()

        await self._send_transcript(channel, transcript)

    # =========================================================================
    # ANSWER HANDLING
    # =========================================================================

    async def transcribe(self, record: SessionRecord, audio: bytes, audio_format: str) -> str:
        """Transcribe an answer, substituting the sentinel for silence or failure."""
        if not audio:
            logger.info(f"Session {record.session_id}: no audio frames received")
            return NO_SPEECH_SENTINEL
        try:
            text = await self.audio_processor.speech_to_text(
                audio,
                audio_format=audio_format,
                language=record.config.language,
            )
        except UpstreamFailure as e:
            logger.warning(f"Session {record.session_id}: transcription failed: {e}")
            text = ""
        return text or NO_SPEECH_SENTINEL

    async def submit_answer(
        self,
        channel: ClientChannel,
        record: SessionRecord,
        audio: bytes,
        audio_format: str = "webm",
    ) -> None:
        """
        Handle answer_audio_end for a session.

        Transcribes, appends the candidate utterance, then either asks the
        next question or moves to evaluation. A non-answer still counts as
        an answer.
        """
        if record.is_closed:
            logger.info(f"Session {record.session_id} is closed, ignoring answer")
            return

        text = await self.transcribe(record, audio, audio_format)

        async with record.lock:
            if record.is_closed:
                logger.info(f"Session {record.session_id} closed during transcription, dropping answer")
                return
            record.append(Speaker.CANDIDATE, text)
            transcript = record.transcript_payload()
            keep_going = should_continue(record.turns_completed, record.config.max_turns)

        await self._send_transcript(channel, transcript)

        if not keep_going:
            await self.finish(channel, record, reason="turns_exhausted")
            return

        reply = await self.ai_reasoning.generate_turn(
            record.config,
            record.persona,
            list(record.transcript),
            session_id=record.session_id,
        )

        async with record.lock:
            if record.is_closed:
                logger.info(f"Session {record.session_id} closed during generation, dropping turn")
                return
            if not should_continue(record.turns_completed, record.config.max_turns):
                logger.info(f"Session {record.session_id} turn budget used up, dropping turn")
                return
            record.append(Speaker.INTERVIEWER, reply)
            record.turns_completed += 1
            transcript = record.transcript_payload()

        logger.info(
            f"Session {record.session_id}: turn {record.turns_completed}/"
            f"{record.config.max_turns - 1}"
        )
        await self._send_transcript(channel, transcript)
        await self.streamer.speak(channel, reply, voice=record.config.voice)

    async def stop(self, channel: ClientChannel, record: SessionRecord) -> bool:
        """Handle an explicit stop: evaluate now unless already finished."""
        if record.done:
            logger.info(f"Session {record.session_id} already done, ignoring stop")
            return False
        return await self.finish(channel, record, reason="stop")

    # =========================================================================
    # EVALUATION
    # =========================================================================

    async def finish(self, channel: ClientChannel, record: SessionRecord, reason: str) -> bool:
        """
        EVALUATING → DONE.

        Returns:
            True if this call performed the evaluation, False if another
            path had already claimed it
        """
        if not await record.claim_evaluation():
            logger.info(f"Session {record.session_id}: evaluation already claimed ({reason}), skipping")
            return False

        logger.info(f"Session {record.session_id}: evaluating ({reason})")
        try:
            evaluation = await self.evaluation_engine.evaluate(
                record.config,
                list(record.transcript),
                session_id=record.session_id,
            )
        except BaseException:
            await record.abandon_evaluation()
            raise

        async with record.lock:
            record.append(Speaker.INTERVIEWER, evaluation.summary_text)
            record.complete(evaluation)
            transcript = record.transcript_payload()

        self.ai_reasoning.record_score(record.session_id, evaluation.overall_score)

        await self._send_transcript(channel, transcript)
        await channel.send_json({
            "type": "done",
            "summaryText": evaluation.summary_text,
            "overallScore": evaluation.overall_score,
            "rubric": evaluation.rubric.model_dump(mode="json"),
        })

        # The result is already delivered; the spoken summary follows on its own.
        self.streamer.speak_in_background(channel, evaluation.summary_text, voice=record.config.voice)
        return True

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _send_transcript(self, channel: ClientChannel, transcript: list[dict[str, str]]) -> None:
        await channel.send_json({"type": "transcript_update", "transcript": transcript})

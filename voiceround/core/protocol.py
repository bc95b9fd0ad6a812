"""
Protocol Dispatcher

Per-connection message loop. The socket reader only enqueues frames into
a mailbox; one consumer task takes them out in arrival order and drives
the orchestrator, so handlers for a connection never overlap.

Client -> Server:
  {type:"start", language, role, level, round, maxTurns, candidateName?, voice?, jobContext?}
  {type:"answer_audio_start", format?}
  (binary audio frames...)
  {type:"answer_audio_end"}
  {type:"stop"}

Server -> Client:
  {type:"session", sessionId}
  {type:"persona", text}
  (binary) TTS frames, then {type:"tts_done", format}
  {type:"transcript_update", transcript:[{from, text}]}
  {type:"done", summaryText, overallScore, rubric}
  {type:"error", error}
"""

import asyncio
import json
import logging
from typing import Any

from pydantic import ValidationError

from voiceround.core.audio_buffer import AudioIngestionBuffer
from voiceround.core.channel import ClientChannel
from voiceround.core.interview_orchestrator import InterviewOrchestrator
from voiceround.models.messages import (
    INBOUND_MESSAGES,
    AudioEndMessage,
    AudioStartMessage,
    ErrorCode,
    InboundMessage,
    StartMessage,
    StopMessage,
)
from voiceround.models.session import SessionRecord

logger = logging.getLogger(__name__)


class MalformedMessage(Exception):
    """A control frame could not be parsed or has an unknown type."""

    def __init__(self, code: ErrorCode, detail: str = ""):
        super().__init__(detail or code.value)
        self.code = code


class SessionNotFound(Exception):
    """A control message addresses a session that is not registered."""
    pass


def parse_message(raw: str | bytes) -> InboundMessage:
    """
    Parse one JSON control frame.

    Raises:
        MalformedMessage: invalid_json for unparseable or invalid frames,
            unrecognized_type for an unknown ``type``
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedMessage(ErrorCode.INVALID_JSON, str(e)) from e

    if not isinstance(data, dict):
        raise MalformedMessage(ErrorCode.INVALID_JSON, "control frame must be a JSON object")

    model = INBOUND_MESSAGES.get(data.get("type"))
    if model is None:
        raise MalformedMessage(ErrorCode.UNRECOGNIZED_TYPE, f"unknown type {data.get('type')!r}")

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedMessage(ErrorCode.INVALID_JSON, str(e)) from e


class ProtocolDispatcher:
    """
    Drives one connection's sessions.

    Owns the connection's Audio Ingestion Buffer and the id of its
    current session.
    """

    def __init__(self, orchestrator: InterviewOrchestrator, channel: ClientChannel):
        self.orchestrator = orchestrator
        self.channel = channel
        self.buffer = AudioIngestionBuffer()
        self.session_id: str | None = None
        self._mailbox: asyncio.Queue = asyncio.Queue()
        self._consumer: asyncio.Task | None = None

    @property
    def registry(self):
        return self.orchestrator.registry

    # =========================================================================
    # MAILBOX
    # =========================================================================

    def start(self) -> asyncio.Task:
        """Start the consumer task."""
        if self._consumer is None:
            self._consumer = asyncio.create_task(self._run(), name=f"{self.channel.name}:mailbox")
        return self._consumer

    def feed_text(self, text: str) -> None:
        self._mailbox.put_nowait(text)

    def feed_binary(self, data: bytes) -> None:
        self._mailbox.put_nowait(bytes(data))

    async def drain(self) -> None:
        """Wait until every enqueued frame has been handled."""
        await self._mailbox.join()

    async def _run(self) -> None:
        while True:
            item = await self._mailbox.get()
            try:
                await self.handle(item)
            finally:
                self._mailbox.task_done()

    async def close(self) -> None:
        """Stop the consumer, cancel background work, evict the session."""
        if self._consumer is not None and not self._consumer.done():
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
        await self.channel.close()
        if self.session_id:
            self.registry.remove(self.session_id)
            self.session_id = None

    # =========================================================================
    # DISPATCH
    # =========================================================================

    async def handle(self, frame: Any) -> None:
        """
        Handle one inbound frame.

        Malformed frames and unknown sessions are reported to the client;
        any other failure is logged and reported as server_exception, and
        the loop carries on with the session in its last consistent state.
        """
        try:
            if isinstance(frame, (bytes, bytearray)):
                self.buffer.append(frame)
                return
            await self.handle_message(parse_message(frame))
        except MalformedMessage as e:
            logger.info(f"Malformed message on {self.channel.name}: {e}")
            await self._report(e.code)
        except SessionNotFound as e:
            logger.info(f"Session not found on {self.channel.name}: {e}")
            await self._report(ErrorCode.SESSION_NOT_FOUND)
        except Exception:
            logger.exception(f"Error handling message on {self.channel.name}")
            await self._report(ErrorCode.SERVER_EXCEPTION)

    async def handle_message(self, message: InboundMessage) -> None:
        if isinstance(message, StartMessage):
            await self._on_start(message)
        elif isinstance(message, AudioStartMessage):
            self.buffer.begin(message.format)
        elif isinstance(message, AudioEndMessage):
            await self._on_audio_end(message)
        elif isinstance(message, StopMessage):
            await self._on_stop(message)

    async def _on_start(self, message: StartMessage) -> None:
        prior = self.registry.get(self.session_id)
        if prior is not None:
            self.registry.remove(prior.session_id)

        record = self.orchestrator.create_session(message, prior.config if prior else None)
        self.session_id = record.session_id
        await self.orchestrator.open_session(self.channel, record)

    async def _on_audio_end(self, message: AudioEndMessage) -> None:
        record = self._require_session(message)
        audio_format = self.buffer.format
        audio = self.buffer.drain()
        await self.orchestrator.submit_answer(self.channel, record, audio, audio_format)

    async def _on_stop(self, message: StopMessage) -> None:
        record = self._require_session(message)
        await self.orchestrator.stop(self.channel, record)

    def _require_session(self, message: InboundMessage) -> SessionRecord:
        session_id = message.session_id or self.session_id
        record = self.registry.get(session_id)
        if record is None:
            raise SessionNotFound(session_id or "<none>")
        return record

    async def _report(self, code: ErrorCode) -> None:
        try:
            await self.channel.send_error(code.value)
        except Exception as e:
            logger.warning(f"Could not send error to {self.channel.name}: {e}")

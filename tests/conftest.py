import asyncio
import json

import pytest

from voiceround.config.settings import Settings
from voiceround.core.ai_reasoning import UpstreamFailure
from voiceround.core.audio_processor import SynthesizedAudio
from voiceround.core.channel import ClientChannel
from voiceround.core.evaluation_engine import EvaluationEngine
from voiceround.core.interview_orchestrator import InterviewOrchestrator
from voiceround.core.session_registry import SessionRegistry


RUBRIC_JSON = json.dumps({
    "communication": 7,
    "technical": 6,
    "problem_solving": 8,
    "relevance": 9,
    "confidence": 5,
    "answer_quality": "good",
    "notes": "Solid answers.",
})


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LANGFUSE_ENABLED", "false")
    monkeypatch.setenv("LLM_API_KEY", "test-key")


class FakeWebSocket:
    def __init__(self):
        self.sent = []

    async def send_text(self, payload: str):
        await asyncio.sleep(0)
        self.sent.append(json.loads(payload))

    async def send_bytes(self, payload: bytes):
        await asyncio.sleep(0)
        self.sent.append(bytes(payload))

    def messages(self, type_: str | None = None) -> list[dict]:
        items = [m for m in self.sent if isinstance(m, dict)]
        if type_ is None:
            return items
        return [m for m in items if m.get("type") == type_]

    def frames(self) -> list[bytes]:
        return [m for m in self.sent if isinstance(m, bytes)]


class FakeAI:
    """Deterministic stand-in for AIReasoningLayer."""

    def __init__(self, rubric: str = RUBRIC_JSON, summary: str = "Good interview. Recommendation: Hire"):
        self.rubric = rubric
        self.summary = summary
        self.turns = 0
        self.scores = []
        self.chat_calls = []
        self.turn_delay = 0.0
        self.fail_chat = False

    async def generate_persona(self, config, session_id=None):
        return f"You are Alex, interviewing for {config.role}."

    async def generate_greeting(self, config, session_id=None):
        return "Hello, please introduce yourself."

    async def generate_turn(self, config, persona, transcript, session_id=None):
        if self.turn_delay:
            await asyncio.sleep(self.turn_delay)
        self.turns += 1
        return f"Question {self.turns}?"

    async def chat(self, messages, temperature=0.5, trace_name="chat_completion", session_id=None):
        self.chat_calls.append(trace_name)
        await asyncio.sleep(0)
        if self.fail_chat:
            raise UpstreamFailure("llm down")
        if trace_name == "evaluation_rubric":
            return self.rubric
        return self.summary

    def record_score(self, session_id, value):
        self.scores.append((session_id, value))


class FakeAudio:
    """Deterministic stand-in for AudioProcessor."""

    def __init__(self, transcript: str = "I have five years of experience.", speech: bytes = b"0123456789"):
        self.transcript = transcript
        self.speech = speech
        self.stt_calls = []
        self.fail_stt = False
        self.fail_tts = False

    async def speech_to_text(self, audio_data, audio_format="webm", language="en"):
        self.stt_calls.append((audio_data, audio_format, language))
        await asyncio.sleep(0)
        if self.fail_stt:
            raise UpstreamFailure("stt down")
        return self.transcript

    async def text_to_speech(self, text, voice=None):
        await asyncio.sleep(0)
        if self.fail_tts:
            raise UpstreamFailure("tts down")
        return SynthesizedAudio(self.speech, "mp3")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        langfuse_enabled=False,
        tts_chunk_bytes=4,
        tts_format="mp3",
        default_max_turns=6,
        max_turns_limit=20,
    )


@pytest.fixture
def fake_ai() -> FakeAI:
    return FakeAI()


@pytest.fixture
def fake_audio() -> FakeAudio:
    return FakeAudio()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def orchestrator(fake_ai, fake_audio, registry, settings) -> InterviewOrchestrator:
    return InterviewOrchestrator(
        ai_reasoning=fake_ai,
        audio_processor=fake_audio,
        evaluation_engine=EvaluationEngine(fake_ai),
        registry=registry,
        settings=settings,
    )


@pytest.fixture
def websocket() -> FakeWebSocket:
    return FakeWebSocket()


@pytest.fixture
def channel(websocket) -> ClientChannel:
    return ClientChannel(websocket, name="test")

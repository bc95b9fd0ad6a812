"""
Audio Processing Layer for VoiceRound

Handles:
- Speech-to-Text (STT) via an OpenAI-compatible transcription API
- Text-to-Speech (TTS) via an OpenAI-compatible speech API or Edge TTS

Designed for:
- One-shot transcription of a complete spoken answer
- Whole-payload synthesis that the audio streamer slices into frames
"""

import logging
from dataclasses import dataclass

import edge_tts
import httpx

from voiceround.config.settings import Settings, get_settings
from voiceround.core.ai_reasoning import UpstreamFailure

logger = logging.getLogger(__name__)


AUDIO_MIME_TYPES: dict[str, str] = {
    "webm": "audio/webm",
    "ogg": "audio/ogg",
    "wav": "audio/wav",
    "mp3": "audio/mpeg",
    "m4a": "audio/mp4",
    "mp4": "audio/mp4",
}


@dataclass(frozen=True)
class SynthesizedAudio:
    """Synthesized speech payload and its container format."""

    data: bytes
    format: str


class AudioProcessor:
    """
    Central audio processing component.

    STT: OpenAI-compatible /audio/transcriptions (whisper-1)
    TTS: OpenAI-compatible /audio/speech (tts-1) or Edge TTS
    """

    # Edge TTS has its own voice names; map the OpenAI-style ones
    EDGE_VOICES = {
        "alloy": "en-US-AriaNeural",
        "echo": "en-US-GuyNeural",
        "fable": "en-GB-RyanNeural",
        "onyx": "en-US-DavisNeural",
        "nova": "en-US-JennyNeural",
        "shimmer": "en-US-MichelleNeural",
        "default": "en-US-AriaNeural",
    }

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize audio processor."""
        self.settings = settings or get_settings()

        # HTTP client for API-based services
        self.client = client or httpx.AsyncClient(
            base_url=self.settings.llm_base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {self.settings.llm_api_key}"},
            timeout=self.settings.llm_timeout_seconds,
        )

    async def close(self):
        """Clean up resources."""
        await self.client.aclose()

    # =========================================================================
    # SPEECH-TO-TEXT
    # =========================================================================

    async def speech_to_text(
        self,
        audio_data: bytes,
        audio_format: str = "webm",
        language: str = "en",
    ) -> str:
        """
        Transcribe audio to text.

        Args:
            audio_data: Complete answer audio (container bytes)
            audio_format: Declared container format (webm, wav, ...)
            language: Language code

        Returns:
            Transcribed text, possibly empty

        Raises:
            UpstreamFailure: If the transcription service fails
        """
        mime = AUDIO_MIME_TYPES.get(audio_format, "application/octet-stream")
        files = {
            "file": (f"answer.{audio_format}", audio_data, mime),
        }
        data = {
            "model": self.settings.stt_model,
            "response_format": "json",
            "temperature": "0",
            "language": language,
        }

        try:
            response = await self.client.post("/audio/transcriptions", files=files, data=data)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Transcription API error: {e}")
            raise UpstreamFailure(str(e)) from e
        except ValueError as e:
            logger.error(f"Transcription API returned invalid JSON: {e}")
            raise UpstreamFailure(str(e)) from e

        text = result.get("text", "") if isinstance(result, dict) else ""
        return (text or "").strip()

    # =========================================================================
    # TEXT-TO-SPEECH
    # =========================================================================

    async def text_to_speech(
        self,
        text: str,
        voice: str | None = None,
    ) -> SynthesizedAudio:
        """
        Convert text to speech.

        Args:
            text: Text to synthesize
            voice: Voice to use (optional, uses default)

        Returns:
            SynthesizedAudio with the full payload

        Raises:
            UpstreamFailure: If synthesis fails or yields no audio
        """
        provider = self.settings.tts_provider.lower()
        voice = voice or self.settings.tts_voice

        logger.info(f"TTS request: provider={provider}, voice={voice}, chars={len(text)}")

        if provider == "edge-tts":
            return await self._tts_edge(text, voice)
        return await self._tts_openai(text, voice)

    async def _tts_openai(self, text: str, voice: str) -> SynthesizedAudio:
        """Generate speech using the OpenAI-compatible speech endpoint."""
        fmt = self.settings.tts_format
        payload = {
            "model": self.settings.tts_model,
            "voice": voice,
            "input": text,
            "response_format": fmt,
        }
        try:
            response = await self.client.post("/audio/speech", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Speech API error: {e}")
            raise UpstreamFailure(str(e)) from e

        if not response.content:
            raise UpstreamFailure("speech API returned no audio")
        return SynthesizedAudio(response.content, fmt)

    async def _tts_edge(self, text: str, voice: str) -> SynthesizedAudio:
        """Generate speech using Edge TTS (Microsoft)."""
        edge_voice = self.EDGE_VOICES.get(voice, voice if "Neural" in voice else self.EDGE_VOICES["default"])

        try:
            communicate = edge_tts.Communicate(text, edge_voice)

            # Collect audio chunks
            audio_chunks = []
            async for chunk in communicate.stream():
                if chunk["type"] == "audio":
                    audio_chunks.append(chunk["data"])
        except Exception as e:
            logger.error(f"Edge TTS failed: {e}")
            raise UpstreamFailure(str(e)) from e

        audio_data = b"".join(audio_chunks)
        if not audio_data:
            raise UpstreamFailure("edge-tts returned no audio")
        return SynthesizedAudio(audio_data, "mp3")

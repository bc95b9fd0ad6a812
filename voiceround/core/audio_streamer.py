"""
Outbound Audio Streamer

Sends synthesized speech to the client as fixed-size binary frames
followed by a ``tts_done`` completion marker. Holding the channel's
stream lock for the whole payload keeps frames of two streams from
interleaving.
"""

import asyncio
import logging
from typing import Any

from voiceround.core.ai_reasoning import UpstreamFailure
from voiceround.core.channel import ClientChannel

logger = logging.getLogger(__name__)


def split_frames(payload: bytes, chunk_bytes: int) -> list[bytes]:
    """Split payload into frames of at most chunk_bytes; the last may be shorter."""
    if chunk_bytes <= 0:
        raise ValueError(f"chunk_bytes must be positive, got {chunk_bytes}")
    return [payload[i:i + chunk_bytes] for i in range(0, len(payload), chunk_bytes)]


class OutboundAudioStreamer:
    """Streams synthesized speech payloads over a client channel."""

    def __init__(self, audio_processor: Any, chunk_bytes: int = 32 * 1024, default_format: str = "mp3"):
        """
        Args:
            audio_processor: Provides text_to_speech(text, voice)
            chunk_bytes: Maximum binary frame size
            default_format: Format announced when synthesis fails
        """
        self.audio_processor = audio_processor
        self.chunk_bytes = chunk_bytes
        self.default_format = default_format

    async def stream(self, channel: ClientChannel, payload: bytes, audio_format: str) -> int:
        """
        Send payload as binary frames, then the completion marker.

        Returns:
            Number of binary frames sent
        """
        frames = split_frames(payload, self.chunk_bytes)
        async with channel.stream_lock:
            for frame in frames:
                await channel.send_bytes(frame)
            await channel.send_json({"type": "tts_done", "format": audio_format})
        return len(frames)

    async def speak(self, channel: ClientChannel, text: str, voice: str | None = None) -> int:
        """
        Synthesize text and stream it.

        A synthesis failure is recovered locally: no frames are sent but
        the completion marker still is, so the client never waits forever.
        """
        try:
            audio = await self.audio_processor.text_to_speech(text, voice=voice)
            payload, audio_format = audio.data, audio.format
        except UpstreamFailure as e:
            logger.warning(f"Speech synthesis failed, sending empty stream: {e}")
            payload, audio_format = b"", self.default_format

        return await self.stream(channel, payload, audio_format)

    def speak_in_background(
        self,
        channel: ClientChannel,
        text: str,
        voice: str | None = None,
    ) -> asyncio.Task:
        """Fire-and-forget variant of speak(); failures are logged only."""
        return channel.spawn(self.speak(channel, text, voice), name="tts")

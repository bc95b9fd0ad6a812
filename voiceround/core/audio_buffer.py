"""
Audio Ingestion Buffer

Collects the binary frames of one spoken answer between the
answer_audio_start and answer_audio_end markers. Owned by a single
connection and never shared.
"""

import logging

logger = logging.getLogger(__name__)


class AudioIngestionBuffer:
    """Per-connection accumulator for one answer's audio frames."""

    DEFAULT_FORMAT = "webm"

    def __init__(self):
        self._frames: list[bytes] = []
        self._format = self.DEFAULT_FORMAT
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def format(self) -> str:
        return self._format

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    def begin(self, audio_format: str | None = None) -> None:
        """Start a new answer cycle, discarding anything buffered."""
        if self._frames:
            logger.debug(f"Discarding {len(self._frames)} unconsumed audio frames")
        self._frames = []
        self._format = (audio_format or self.DEFAULT_FORMAT).strip().lower()
        self._open = True

    def append(self, frame: bytes) -> bool:
        """
        Buffer one frame.

        Returns:
            False if no answer cycle is open and the frame was dropped
        """
        if not self._open:
            logger.debug(f"Dropping {len(frame)}-byte audio frame outside an answer")
            return False
        self._frames.append(bytes(frame))
        return True

    def drain(self) -> bytes:
        """Return all frames in arrival order and close the cycle."""
        data = b"".join(self._frames)
        self._frames = []
        self._open = False
        return data

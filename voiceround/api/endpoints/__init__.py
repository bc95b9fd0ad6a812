"""
API endpoint modules for VoiceRound
"""

from voiceround.api.endpoints import interview, metadata

__all__ = ["interview", "metadata"]

"""
VoiceRound - Real-time Voice Mock Interview Server

Runs spoken mock interviews over a WebSocket: an AI interviewer greets the
candidate, asks follow-up questions from recorded answers, and closes with
a rubric score and a spoken summary.
"""

__version__ = "0.1.0"
__author__ = "VoiceRound Team"

"""
Session Registry

In-memory map of session id to SessionRecord. Map access is guarded by a
lock so any connection handler can use it; per-record mutations are
guarded by the record's own asyncio lock.
"""

import logging
from datetime import datetime, timedelta
from threading import Lock

from voiceround.models.session import SessionRecord

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Keyed lookup of active interview sessions."""

    def __init__(self):
        self._lock = Lock()
        self._sessions: dict[str, SessionRecord] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def create(self, record: SessionRecord) -> str:
        """Register a new record and return its id."""
        with self._lock:
            if record.session_id in self._sessions:
                raise ValueError(f"Session already registered: {record.session_id}")
            self._sessions[record.session_id] = record
        logger.info(f"Registered session {record.session_id}")
        return record.session_id

    def get(self, session_id: str | None) -> SessionRecord | None:
        """Look up a session; None means it is not registered."""
        if not session_id:
            return None
        with self._lock:
            return self._sessions.get(session_id)

    def put(self, session_id: str, record: SessionRecord) -> None:
        with self._lock:
            self._sessions[session_id] = record

    def remove(self, session_id: str) -> SessionRecord | None:
        with self._lock:
            record = self._sessions.pop(session_id, None)
        if record is not None:
            logger.info(f"Evicted session {session_id}")
        return record

    def evict_expired(self, retention_seconds: float, now: datetime | None = None) -> int:
        """
        Remove finished sessions whose retention window has passed.

        Returns:
            Number of sessions removed
        """
        cutoff = (now or datetime.utcnow()) - timedelta(seconds=retention_seconds)
        removed = 0
        with self._lock:
            for session_id, record in list(self._sessions.items()):
                if not record.done or record.completed_at is None:
                    continue
                if record.completed_at <= cutoff:
                    self._sessions.pop(session_id, None)
                    removed += 1
        if removed:
            logger.info(f"Evicted {removed} expired sessions")
        return removed

"""
In-memory transcript store.

In production sessions live in a document table keyed by session id.
Every read returns a deep copy so callers never mutate stored history
except through ``append_turns_and_save``.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional, Protocol

from clinic_assistant.schemas.conversation_schema import Session, SessionStatus

logger = logging.getLogger(__name__)


class TranscriptStore(Protocol):
    """Persistence contract consumed by the orchestrator."""

    def find_latest_open_session(self, caller_id: str) -> Optional[Session]: ...

    def load_session(self, session_id: str) -> Optional[Session]: ...

    def append_turns_and_save(self, session: Session) -> Session: ...


class InMemoryTranscriptStore:
    """Transcript store backed by a dict of session id to session."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def find_latest_open_session(self, caller_id: str) -> Optional[Session]:
        candidates = [
            s for s in self._sessions.values()
            if s.caller_id == caller_id and s.status == SessionStatus.OPEN
        ]
        if not candidates:
            return None
        latest = max(candidates, key=lambda s: s.last_turn_at)
        return latest.model_copy(deep=True)

    def load_session(self, session_id: str) -> Optional[Session]:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session else None

    def append_turns_and_save(self, session: Session) -> Session:
        """Persist a session, assigning its identifier on first save."""
        stored = session.model_copy(deep=True)
        if stored.session_id is None:
            stored.session_id = uuid.uuid4().hex[:12]
            logger.info("Session created: %s for caller %s", stored.session_id, stored.caller_id)
        else:
            previous = self._sessions.get(stored.session_id)
            if previous is not None and len(stored.turns) < len(previous.turns):
                raise ValueError(
                    f"Session {stored.session_id} would lose turns; history is append-only"
                )
        self._sessions[stored.session_id] = stored
        return stored.model_copy(deep=True)

    def mark_inactive(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        if session is None:
            raise KeyError(f"Unknown session: {session_id}")
        session.status = SessionStatus.INACTIVE
        logger.info("Session marked inactive: %s", session_id)

    def sweep_stale(self, now: datetime, timeout_minutes: int) -> int:
        """Mark every open session idle for longer than the timeout as inactive."""
        limit = timedelta(minutes=timeout_minutes)
        stale = [
            s for s in self._sessions.values()
            if s.status == SessionStatus.OPEN and now - s.last_turn_at > limit
        ]
        for session in stale:
            session.status = SessionStatus.INACTIVE
        if stale:
            logger.info("Swept %d stale session(s)", len(stale))
        return len(stale)

    def list_sessions(self, caller_id: str, limit: int = 10) -> list[Session]:
        sessions = sorted(
            (s for s in self._sessions.values() if s.caller_id == caller_id),
            key=lambda s: s.last_turn_at,
            reverse=True,
        )
        return [s.model_copy(deep=True) for s in sessions[:limit]]

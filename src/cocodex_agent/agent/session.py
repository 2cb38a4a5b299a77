"""
Session management for conversations.

Sessions live in memory. The manager hands out copies of the history so
callers never alias the stored list.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Sequence

import structlog

from ..llm.base import LLMMessage

logger = structlog.get_logger()


class SessionNotFoundError(KeyError):
    """Raised when a session id is unknown or no session is active."""


@dataclass
class Session:
    """A conversation session."""

    id: str
    messages: list[LLMMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] = field(default_factory=dict)

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)


class SessionManager:
    """Manages conversation sessions and their message histories."""

    def __init__(self):
        self._sessions: dict[str, Session] = {}
        self._current_session_id: str | None = None

    @property
    def current_session_id(self) -> str | None:
        return self._current_session_id

    def create_session(
        self,
        session_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Create a session and make it current."""
        session_id = session_id or f"session_{uuid.uuid4().hex[:12]}"
        self._sessions[session_id] = Session(id=session_id, metadata=dict(metadata or {}))
        self._current_session_id = session_id
        logger.info("Created new session", session_id=session_id)
        return session_id

    def set_current_session(self, session_id: str) -> None:
        self._get(session_id)
        self._current_session_id = session_id

    def has_session(self, session_id: str) -> bool:
        return session_id in self._sessions

    def list_sessions(self) -> list[str]:
        return list(self._sessions.keys())

    def _get(self, session_id: str | None) -> Session:
        session_id = session_id or self._current_session_id
        if session_id is None:
            raise SessionNotFoundError("No active session")
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return session

    def get_session(self, session_id: str | None = None) -> Session:
        return self._get(session_id)

    def get_messages(self, session_id: str | None = None) -> list[LLMMessage]:
        """Get a copy of a session's history."""
        return list(self._get(session_id).messages)

    def message_count(self, session_id: str | None = None) -> int:
        return len(self._get(session_id).messages)

    def add_message(self, message: LLMMessage, session_id: str | None = None) -> None:
        session = self._get(session_id)
        session.messages.append(message)
        session.touch()

    def add_messages(self, messages: Sequence[LLMMessage], session_id: str | None = None) -> None:
        session = self._get(session_id)
        session.messages.extend(messages)
        session.touch()

    def replace_messages(self, messages: Sequence[LLMMessage], session_id: str | None = None) -> None:
        """Replace a session's whole history."""
        session = self._get(session_id)
        session.messages = list(messages)
        session.touch()
        logger.debug("Session history replaced", session_id=session.id, message_count=len(messages))

    def clear_session(self, session_id: str | None = None) -> None:
        """Drop every message of a session, keeping the session itself."""
        session = self._get(session_id)
        session.messages = []
        session.touch()
        logger.info("Session cleared", session_id=session.id)

    def delete_session(self, session_id: str) -> bool:
        """Delete a session. Returns False when it did not exist."""
        if session_id not in self._sessions:
            return False
        del self._sessions[session_id]
        if self._current_session_id == session_id:
            self._current_session_id = None
        logger.info("Session deleted", session_id=session_id)
        return True

"""
Tests for the in-memory session store.
"""

import pytest

from cocodex_agent.agent.session import SessionManager, SessionNotFoundError
from cocodex_agent.llm.base import LLMMessage


def test_create_session_becomes_current():
    sessions = SessionManager()
    session_id = sessions.create_session()

    assert session_id.startswith("session_")
    assert sessions.current_session_id == session_id
    assert sessions.get_messages() == []


def test_create_session_with_explicit_id():
    sessions = SessionManager()
    assert sessions.create_session("mine", metadata={"user": "u1"}) == "mine"
    assert sessions.get_session("mine").metadata == {"user": "u1"}


def test_get_messages_returns_a_copy():
    sessions = SessionManager()
    session_id = sessions.create_session()
    sessions.add_message(LLMMessage(role="user", content="hi"), session_id)

    messages = sessions.get_messages(session_id)
    messages.append(LLMMessage(role="assistant", content="not stored"))

    assert sessions.message_count(session_id) == 1


def test_replace_messages():
    sessions = SessionManager()
    session_id = sessions.create_session()
    sessions.add_messages(
        [LLMMessage(role="user", content="a"), LLMMessage(role="assistant", content="b")],
        session_id,
    )
    before = sessions.get_session(session_id).updated_at

    replacement = [LLMMessage(role="assistant", content="summary")]
    sessions.replace_messages(replacement, session_id)

    assert sessions.get_messages(session_id) == replacement
    assert sessions.get_session(session_id).updated_at >= before


def test_sessions_are_isolated():
    sessions = SessionManager()
    first = sessions.create_session("first")
    second = sessions.create_session("second")

    sessions.add_message(LLMMessage(role="user", content="only in first"), first)

    assert sessions.message_count(first) == 1
    assert sessions.message_count(second) == 0
    assert sessions.current_session_id == "second"
    assert sessions.list_sessions() == ["first", "second"]


def test_set_current_session():
    sessions = SessionManager()
    sessions.create_session("a")
    sessions.create_session("b")

    sessions.set_current_session("a")
    assert sessions.current_session_id == "a"

    with pytest.raises(SessionNotFoundError):
        sessions.set_current_session("missing")


def test_clear_session_keeps_session():
    sessions = SessionManager()
    session_id = sessions.create_session()
    sessions.add_message(LLMMessage(role="user", content="hi"))

    sessions.clear_session()

    assert sessions.has_session(session_id)
    assert sessions.get_messages() == []


def test_delete_session():
    sessions = SessionManager()
    session_id = sessions.create_session()

    assert sessions.delete_session(session_id) is True
    assert sessions.current_session_id is None
    assert sessions.delete_session(session_id) is False


def test_missing_session_raises():
    sessions = SessionManager()

    with pytest.raises(SessionNotFoundError):
        sessions.get_messages()

    sessions.create_session("real")
    with pytest.raises(SessionNotFoundError):
        sessions.replace_messages([], "ghost")

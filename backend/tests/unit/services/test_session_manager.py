"""Unit tests for chat session management."""

import pytest
from unittest.mock import patch

from sqlalchemy.orm.exc import StaleDataError

from app.db.models import Character, ChatMessage, ChatSession
from app.services.chat import session_manager
from app.services.chat.errors import (
    CharacterAccessDeniedError,
    CharacterNotFoundError,
    SessionAccessDeniedError,
    SessionNotFoundError,
)
from app.services.chat.message_store import (
    build_context_messages,
    get_recent_messages,
    store_message,
)
from app.services.mood import Mood


@pytest.fixture
def public_character(db_session, other_user):
    """A public character owned by another user."""
    character = Character(
        name="Raka",
        synopsis="Barista yang pendiam.",
        greetings="",
        is_public=True,
        user_id=other_user.id,
    )
    db_session.add(character)
    db_session.commit()
    db_session.refresh(character)
    return character


class TestGetOrCreateSession:
    """Tests for find-or-create of a user's session with a character."""

    def test_creates_session_with_greeting(self, db_session, test_user, test_character):
        """A new session starts with the character's greeting."""
        chat_session = session_manager.get_or_create_session(
            db_session, test_user.id, test_character.id
        )

        assert chat_session.title == "Chat dengan Sari"
        assert chat_session.current_mood == Mood.HAPPY.value
        assert chat_session.mood_intensity == 5
        assert chat_session.conversation_length == 0

        messages = db_session.query(ChatMessage).filter_by(session_id=chat_session.id).all()
        assert [(m.role, m.content) for m in messages] == [
            ("assistant", "Hai! Akhirnya kamu datang juga.")
        ]

    def test_returns_existing_session(self, db_session, test_user, test_character):
        """A second call returns the same session."""
        first = session_manager.get_or_create_session(db_session, test_user.id, test_character.id)
        second = session_manager.get_or_create_session(db_session, test_user.id, test_character.id)

        assert first.id == second.id
        assert db_session.query(ChatSession).count() == 1

    def test_force_new_replaces_session(self, db_session, test_user, test_character):
        """force_new deletes the old session and its messages."""
        first = session_manager.get_or_create_session(db_session, test_user.id, test_character.id)
        first_id = first.id

        second = session_manager.get_or_create_session(
            db_session, test_user.id, test_character.id, force_new=True
        )

        assert second.id != first_id
        assert db_session.get(ChatSession, first_id) is None
        assert db_session.query(ChatMessage).filter_by(session_id=first_id).count() == 0

    def test_public_character_without_greeting(self, db_session, test_user, public_character):
        """Public characters are open to everyone; an empty greeting seeds nothing."""
        chat_session = session_manager.get_or_create_session(
            db_session, test_user.id, public_character.id
        )

        assert chat_session.user_id == test_user.id
        assert db_session.query(ChatMessage).filter_by(session_id=chat_session.id).count() == 0

    def test_private_character_of_another_user(self, db_session, other_user, test_character):
        """Private characters are only available to their owner."""
        with pytest.raises(CharacterAccessDeniedError):
            session_manager.get_or_create_session(db_session, other_user.id, test_character.id)

    def test_missing_character(self, db_session, test_user):
        """Unknown characters raise CharacterNotFoundError."""
        with pytest.raises(CharacterNotFoundError):
            session_manager.get_or_create_session(db_session, test_user.id, 999)


class TestSessionLifecycle:
    """Tests for listing, resetting and deleting sessions."""

    def test_user_sessions(self, db_session, test_user, other_user, chat_session, public_character):
        """Only the caller's sessions are listed."""
        session_manager.get_or_create_session(db_session, other_user.id, public_character.id)

        sessions = session_manager.get_user_sessions(db_session, test_user.id)

        assert [s.id for s in sessions] == [chat_session.id]

    def test_reset_session(self, db_session, test_user, chat_session):
        """Reset removes messages and conversation counters, keeping the row."""
        store_message(db_session, chat_session.id, "user", "halo")
        store_message(db_session, chat_session.id, "assistant", "hai")
        chat_session.conversation_length = 2
        db_session.commit()

        deleted = session_manager.reset_session(db_session, chat_session.id, test_user.id)

        assert deleted == 2
        db_session.expire_all()
        session = db_session.get(ChatSession, chat_session.id)
        assert session is not None
        assert session.conversation_length == 0
        assert session.last_user_message is None
        assert db_session.query(ChatMessage).filter_by(session_id=chat_session.id).count() == 0

    def test_delete_session(self, db_session, test_user, chat_session):
        """Delete removes the session and its messages."""
        store_message(db_session, chat_session.id, "user", "halo")
        session_id = chat_session.id

        session_manager.delete_session(db_session, session_id, test_user.id)

        assert db_session.get(ChatSession, session_id) is None
        assert db_session.query(ChatMessage).filter_by(session_id=session_id).count() == 0

    def test_delete_foreign_session(self, db_session, other_user, chat_session):
        """Only the owner may delete a session."""
        with pytest.raises(SessionAccessDeniedError):
            session_manager.delete_session(db_session, chat_session.id, other_user.id)

    def test_delete_missing_session(self, db_session, test_user):
        """Deleting an unknown session raises SessionNotFoundError."""
        with pytest.raises(SessionNotFoundError):
            session_manager.delete_session(db_session, 999, test_user.id)


class TestRecordTurn:
    """Tests for the end-of-turn session update."""

    def test_updates_state_and_version(self, db_session, chat_session):
        """Counters advance by one exchange and the version is bumped."""
        updated = session_manager.record_turn(
            db_session, chat_session.id, Mood.ROMANTIC, 12, response_time_minutes=3
        )

        assert updated.current_mood == Mood.ROMANTIC.value
        assert updated.mood_intensity == 10
        assert updated.conversation_length == 2
        assert updated.user_response_time == 3
        assert updated.last_mood_change is not None
        assert updated.version_id == 2

    def test_same_mood_keeps_last_change(self, db_session, chat_session):
        """last_mood_change only moves when the mood actually changes."""
        updated = session_manager.record_turn(db_session, chat_session.id, Mood.HAPPY, 5, 0)

        assert updated.last_mood_change is None

    def test_concurrent_update_is_retried(self, db_session, session_factory, chat_session):
        """A concurrent writer is detected and the update reapplied on fresh data."""
        # Load the row into this session before another writer changes it
        assert db_session.get(ChatSession, chat_session.id).conversation_length == 0

        other = session_factory()
        try:
            concurrent = other.get(ChatSession, chat_session.id)
            concurrent.conversation_length = 10
            other.commit()
        finally:
            other.close()

        updated = session_manager.record_turn(db_session, chat_session.id, Mood.SAD, 4, 1)

        assert updated.conversation_length == 12
        assert updated.version_id == 3

    def test_gives_up_after_repeated_conflicts(self, db_session, chat_session):
        """Persistent conflicts are raised after the last attempt."""
        with patch.object(db_session, "commit", side_effect=StaleDataError("conflict")):
            with pytest.raises(StaleDataError):
                session_manager.record_turn(db_session, chat_session.id, Mood.SAD, 4, 1)

    def test_missing_session(self, db_session):
        """Recording a turn for an unknown session fails."""
        with pytest.raises(SessionNotFoundError):
            session_manager.record_turn(db_session, 999, Mood.SAD, 4, 1)


class TestMessageStore:
    """Tests for message history helpers."""

    def test_recent_messages_in_order(self, db_session, chat_session):
        """The newest messages are returned oldest first."""
        for index in range(4):
            store_message(db_session, chat_session.id, "user", f"pesan {index}")

        recent = get_recent_messages(db_session, chat_session.id, limit=2)

        assert [m.content for m in recent] == ["pesan 2", "pesan 3"]

    def test_only_newest_image_description_inlined(self, db_session, chat_session):
        """Older image descriptions are left out of the context."""
        store_message(
            db_session, chat_session.id, "user", "foto lama",
            image_url="https://cdn.test/a.jpg", image_description="Pantai.",
        )
        store_message(db_session, chat_session.id, "assistant", "bagus!")
        store_message(
            db_session, chat_session.id, "user", "foto baru",
            image_url="https://cdn.test/b.jpg", image_description="Gunung.",
        )

        context = build_context_messages(get_recent_messages(db_session, chat_session.id))

        assert context == [
            {"role": "user", "content": "foto lama"},
            {"role": "assistant", "content": "bagus!"},
            {"role": "user", "content": "foto baru\n\n[Gambar yang dikirim user: Gunung.]"},
        ]

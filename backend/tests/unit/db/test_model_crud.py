"""
Tests for CRUD operations on database models.

This module tests Create, Read, Update, and Delete operations
for all major models in the application.
"""

from datetime import timedelta

from app.db.models import User, Character, ChatSession, ChatMessage
from app.utils.datetime_helper import utc_now


class TestUserCRUD:
    """Tests for User model CRUD operations."""

    def test_user_create(self, db_session):
        """Test creating a new user."""
        user = User(
            username="cruduser",
            email="crud@example.com",
            password_hash="hashvalue",
            is_active=True,
        )
        db_session.add(user)
        db_session.commit()

        retrieved = db_session.query(User).filter(User.username == "cruduser").first()
        assert retrieved is not None
        assert retrieved.email == "crud@example.com"
        assert retrieved.role == "user"

    def test_user_update(self, test_user, db_session):
        """Test updating user data."""
        test_user.username = "updated_username"
        db_session.commit()

        retrieved = db_session.query(User).filter(User.id == test_user.id).first()
        assert retrieved.username == "updated_username"

    def test_user_delete_cascades_sessions(self, test_user, chat_session, db_session):
        """Deleting a user removes their chat sessions."""
        session_id = chat_session.id

        db_session.delete(test_user)
        db_session.commit()

        assert db_session.query(User).filter(User.id == test_user.id).first() is None
        assert db_session.get(ChatSession, session_id) is None


class TestCharacterCRUD:
    """Tests for Character model CRUD operations."""

    def test_character_defaults(self, test_user, db_session):
        """New characters are private and use the standard compliance mode."""
        character = Character(name="Bima", synopsis="Penjaga toko buku.", user_id=test_user.id)
        db_session.add(character)
        db_session.commit()
        db_session.refresh(character)

        assert character.id is not None
        assert character.compliance_mode == "standard"
        assert character.is_public is False
        assert character.greetings == ""
        assert character.user.username == "testuser"

    def test_character_update(self, test_character, db_session):
        """Test updating character data."""
        test_character.compliance_mode = "strict"
        test_character.is_public = True
        db_session.commit()

        db_session.refresh(test_character)
        assert test_character.compliance_mode == "strict"
        assert test_character.is_public is True


class TestChatSessionCRUD:
    """Tests for ChatSession model CRUD operations."""

    def test_chat_session_defaults(self, test_user, test_character, db_session):
        """A bare session starts happy at intensity 5 with version 1."""
        session = ChatSession(user_id=test_user.id, character_id=test_character.id)
        db_session.add(session)
        db_session.commit()
        db_session.refresh(session)

        assert session.current_mood == "happy"
        assert session.mood_intensity == 5
        assert session.conversation_length == 0
        assert session.user_response_time == 0
        assert session.last_user_message is None
        assert session.version_id == 1
        assert session.character.name == "Sari"

    def test_version_increments_on_update(self, chat_session, db_session):
        """Every update bumps the version counter."""
        chat_session.current_mood = "sad"
        db_session.commit()
        chat_session.mood_intensity = 7
        db_session.commit()

        db_session.refresh(chat_session)
        assert chat_session.version_id == 3

    def test_chat_session_with_messages(self, chat_session, db_session):
        """Messages are ordered by creation time and removed with the session."""
        now = utc_now()
        messages = [
            ChatMessage(
                session_id=chat_session.id,
                role="assistant",
                content="Hai! Lagi ngapain?",
                created_at=now,
            ),
            ChatMessage(
                session_id=chat_session.id,
                role="user",
                content="Lagi santai aja",
                image_url="https://cdn.test/foto.jpg",
                image_description="Secangkir kopi di meja.",
                created_at=now + timedelta(seconds=1),
            ),
        ]
        for msg in messages:
            db_session.add(msg)
        db_session.commit()

        retrieved = (
            db_session.query(ChatSession).filter(ChatSession.id == chat_session.id).first()
        )
        assert [m.role for m in retrieved.messages] == ["assistant", "user"]
        assert retrieved.messages[1].image_description == "Secangkir kopi di meja."

        db_session.delete(retrieved)
        db_session.commit()
        assert db_session.query(ChatMessage).count() == 0

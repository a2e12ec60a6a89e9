"""
Test configuration and fixtures for pytest.
"""

import json
import os
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Set the testing environment flag
os.environ["TESTING"] = "True"
os.environ.pop("AIDORAMA_DEBUG_BYPASS_ACCESS", None)

from app.db.base import Base  # noqa: E402
from app.db.models import Character, ChatSession, User  # noqa: E402
from app.main import app  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.dependencies import db_dependency, get_chat_relay  # noqa: E402
from app.services.chat.stream_relay import ChatStreamRelay  # noqa: E402

# In-memory SQLite shared by every session of a test
DATABASE_URL = "sqlite://"


def upstream_events(*deltas, done=True):
    """Encode content deltas the way the completion provider streams them."""
    chunks = []
    for delta in deltas:
        payload = {"choices": [{"delta": {"content": delta}}]}
        chunks.append(f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8"))
    if done:
        chunks.append(b"data: [DONE]\n\n")
    return chunks


def parse_events(body):
    """Split an SSE body produced by the relay into JSON payloads."""
    events = []
    for block in body.split("\n\n"):
        block = block.strip()
        if block.startswith("data: "):
            events.append(json.loads(block[len("data: "):]))
    return events


class FakeCompletionClient:
    """Stands in for OpenRouterClient; streams canned byte chunks."""

    def __init__(self, chunks=None, error=None, description="Foto kucing oranye."):
        self.chunks = chunks if chunks is not None else upstream_events("Halo", " juga!")
        self.error = error
        self.description = description
        self.describe_error = None
        self.is_configured = True
        self.requests = []
        self.image_requests = []

    async def stream_chat_completion(self, messages, **kwargs):
        self.requests.append(messages)
        if self.error is not None:
            raise self.error
        for chunk in self.chunks:
            yield chunk

    async def describe_image(self, image_url):
        self.image_requests.append(image_url)
        if self.describe_error is not None:
            raise self.describe_error
        return self.description


def steady_rng(value=0.99, choice=None):
    """Random source whose nudge never fires unless told to."""
    rng = MagicMock()
    rng.random.return_value = value
    rng.choice.side_effect = (lambda options: choice) if choice else (lambda options: options[0])
    return rng


@pytest.fixture(scope="function")
def test_engine():
    """Create a fresh in-memory database for a test."""
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    """Session factory bound to the test database."""
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a new database session for a test."""
    session = session_factory()

    yield session

    session.close()


@pytest.fixture
def completion_client():
    """Fake upstream completion client."""
    return FakeCompletionClient()


@pytest.fixture
def relay(session_factory, completion_client):
    """Chat relay wired to the test database and the fake upstream."""
    return ChatStreamRelay(
        session_factory=session_factory,
        completion_client=completion_client,
        rng=steady_rng(),
    )


@pytest.fixture
def client(db_session, relay):
    """Create a test client with a session override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[db_dependency] = override_get_db
    app.dependency_overrides[get_chat_relay] = lambda: relay

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def test_user(db_session):
    """Create a test user."""
    user = User(
        username="testuser",
        email="test@example.com",
        password_hash="hashed_password",
        role="user",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_user(db_session):
    """A second user who owns nothing the tests chat with."""
    user = User(
        username="otheruser",
        email="other@example.com",
        password_hash="hashed_password",
        role="user",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def test_character(db_session, test_user):
    """Create a character owned by the test user."""
    character = Character(
        name="Sari",
        synopsis="Teman kuliah yang ceria dan suka ngobrol.",
        description="Mahasiswi semester lima.",
        greetings="Hai! Akhirnya kamu datang juga.",
        personality="Ceria, perhatian, sedikit manja",
        backstory="Tumbuh besar di Bandung.",
        compliance_mode="standard",
        is_public=False,
        user_id=test_user.id,
    )
    db_session.add(character)
    db_session.commit()
    db_session.refresh(character)
    return character


@pytest.fixture
def chat_session(db_session, test_user, test_character):
    """Create an empty chat session between the test user and character."""
    chat_session = ChatSession(
        user_id=test_user.id,
        character_id=test_character.id,
        title=f"Chat dengan {test_character.name}",
        current_mood="happy",
        mood_intensity=5,
        conversation_length=0,
        user_response_time=0,
    )
    db_session.add(chat_session)
    db_session.commit()
    db_session.refresh(chat_session)
    return chat_session


@pytest.fixture
def auth_headers(test_user):
    """Bearer header for the test user."""
    token = create_access_token(data={"sub": str(test_user.id), "role": test_user.role})
    return {"Authorization": f"Bearer {token}"}


# Reset test environment at the end of session
def pytest_sessionfinish(session, exitstatus):
    """Clean up after all tests have run."""
    os.environ.pop("TESTING", None)


# Alias for compatibility
@pytest.fixture
def db(db_session):
    """Alias for db_session."""
    return db_session

"""
Streaming relay between the web client and the completion provider.

One relay invocation handles one chat turn:

    authorize -> describe image -> persist user message -> load context
    -> compute mood -> stream upstream -> persist reply + session state

Authorization and configuration checks happen before the HTTP response
starts streaming, so they surface as regular HTTP errors. Once the user
message is stored every outcome ends with a stored assistant message:
the streamed text, a fallback sentence on error, or the partial text if the
client disconnects.
"""

import logging
import random
from contextlib import aclosing
from dataclasses import dataclass
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import APP_TIMEZONE, CHAT_HISTORY_LIMIT
from app.db.models import Character, ChatMessage, ChatSession
from app.schemas.chat import ChatMessageResponse
from app.services.chat.message_store import (
    build_context_messages,
    get_recent_messages,
    store_message,
)
from app.services.chat.prompt_builder import build_system_prompt, resolve_local_time
from app.services.chat.session_manager import load_session_with_character, record_turn
from app.services.chat.sse import SSEDecoder, format_event
from app.services.mood import (
    Mood,
    MoodTriggers,
    compute_engagement,
    compute_intensity,
    compute_mood,
    normalize_mood,
    transition_message,
)
from app.services.openrouter.client import UpstreamConfigurationError
from app.utils.datetime_helper import minutes_between, utc_now

logger = logging.getLogger(__name__)

EMPTY_REPLY_FALLBACK = "Maaf, saya tidak dapat merespons saat ini."
ERROR_REPLY_FALLBACK = "Maaf, terjadi kesalahan saat memproses pesan Anda. Silakan coba lagi."
IMAGE_DESCRIPTION_PLACEHOLDER = "[Gambar tidak dapat dideskripsikan]"
STREAM_ERROR = "Failed to get AI response"


@dataclass
class ChatTurn:
    """One user message to relay."""

    session_id: int
    user_id: int
    content: str
    image_url: Optional[str] = None
    browser_time: Optional[str] = None


@dataclass
class MoodUpdate:
    """Mood computed for a turn, written back to the session at the end."""

    previous: Mood
    mood: Mood
    intensity: int
    response_time_minutes: int
    transition: Optional[str] = None


def serialize_message(message: Optional[ChatMessage]) -> Optional[Dict[str, Any]]:
    if message is None:
        return None
    return ChatMessageResponse.model_validate(message).model_dump(by_alias=True, mode="json")


class ChatStreamRelay:
    """Relays one chat turn to the completion provider as an SSE stream."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        completion_client,
        history_limit: int = CHAT_HISTORY_LIMIT,
        rng: Optional[random.Random] = None,
        timezone_name: str = APP_TIMEZONE,
    ):
        self.session_factory = session_factory
        self.completion_client = completion_client
        self.history_limit = history_limit
        self.rng = rng or random.Random()
        self.timezone_name = timezone_name

    def authorize(
        self, db: Session, session_id: int, user_id: int
    ) -> Tuple[ChatSession, Character]:
        """Resolve the session and character; raises if missing or not owned."""
        return load_session_with_character(db, session_id, user_id)

    def ensure_configured(self) -> None:
        """Raise UpstreamConfigurationError when no upstream API key is set."""
        if not getattr(self.completion_client, "is_configured", False):
            raise UpstreamConfigurationError("OpenRouter API key not configured")

    def compute_mood_update(
        self,
        chat_session: ChatSession,
        content: str,
        now: datetime,
        now_local: datetime,
    ) -> MoodUpdate:
        """Derive the mood triggers from the session row and run the engine."""
        previous = normalize_mood(chat_session.current_mood)
        conversation_length = chat_session.conversation_length or 0
        message_count = conversation_length + 1

        response_gap = minutes_between(chat_session.last_user_message, now)
        if chat_session.last_user_message is not None:
            since_last_message = minutes_between(chat_session.updated_at, now)
        else:
            since_last_message = 0

        engagement = compute_engagement(
            message_count=message_count,
            avg_response_time_minutes=response_gap,
            session_duration_minutes=minutes_between(chat_session.created_at, now),
        )

        triggers = MoodTriggers(
            user_response_time_minutes=response_gap,
            conversation_length=conversation_length,
            time_since_last_message_minutes=since_last_message,
            user_engagement=engagement,
            user_message_content=content,
            message_count=message_count,
        )

        mood = compute_mood(triggers, previous, now=now_local, rng=self.rng)
        intensity = compute_intensity(triggers, mood)

        logger.debug(
            f"Session {chat_session.id}: mood {previous.value} -> {mood.value} "
            f"(intensity {intensity}, engagement {engagement})"
        )

        return MoodUpdate(
            previous=previous,
            mood=mood,
            intensity=intensity,
            response_time_minutes=response_gap,
            transition=transition_message(previous, mood),
        )

    def build_messages(
        self,
        character: Character,
        mood_update: MoodUpdate,
        context: List[Dict[str, str]],
        now_local: datetime,
    ) -> List[Dict[str, str]]:
        """System prompt, optional mood-transition line, then the history."""
        system_prompt = build_system_prompt(
            character, mood_update.mood, mood_update.intensity, now_local
        )
        messages = [{"role": "system", "content": system_prompt}]
        if mood_update.transition:
            messages.append({"role": "assistant", "content": mood_update.transition})
        messages.extend(context)
        return messages

    async def _describe_image(self, image_url: str) -> str:
        try:
            return await self.completion_client.describe_image(image_url)
        except Exception as e:
            logger.warning(f"Image description failed for {image_url}: {e}")
            return IMAGE_DESCRIPTION_PLACEHOLDER

    def _store_reply(self, db: Session, turn: ChatTurn, accumulated: str) -> ChatMessage:
        return store_message(
            db, turn.session_id, "assistant", accumulated or EMPTY_REPLY_FALLBACK
        )

    def _record_mood(
        self,
        db: Session,
        turn: ChatTurn,
        mood_update: Optional[MoodUpdate],
        accumulated: str,
        now: datetime,
    ) -> None:
        if mood_update is not None:
            record_turn(
                db,
                turn.session_id,
                mood=mood_update.mood,
                intensity=mood_update.intensity,
                response_time_minutes=mood_update.response_time_minutes,
                now=now,
            )
        logger.info(
            f"Completed turn in session {turn.session_id} "
            f"({len(accumulated)} chars streamed)"
        )

    async def stream_turn(self, turn: ChatTurn) -> AsyncIterator[str]:
        """
        Run one turn and yield SSE-framed events.

        Yields ``delta`` events while text arrives, then exactly one ``done``
        or ``error`` event.
        """
        db = self.session_factory()
        user_message = None
        ai_message = None
        mood_update = None
        accumulated = ""
        finalized = False

        try:
            try:
                image_description = None
                if turn.image_url:
                    image_description = await self._describe_image(turn.image_url)

                user_message = store_message(
                    db,
                    turn.session_id,
                    "user",
                    turn.content,
                    image_url=turn.image_url,
                    image_description=image_description,
                )

                chat_session, character = load_session_with_character(
                    db, turn.session_id, turn.user_id
                )
                now = utc_now()
                now_local = resolve_local_time(turn.browser_time, self.timezone_name)
                mood_update = self.compute_mood_update(
                    chat_session, turn.content, now, now_local
                )

                recent = get_recent_messages(db, turn.session_id, self.history_limit)
                messages = self.build_messages(
                    character, mood_update, build_context_messages(recent), now_local
                )

                decoder = SSEDecoder()
                async with aclosing(
                    self.completion_client.stream_chat_completion(messages)
                ) as chunks:
                    async for chunk in chunks:
                        for delta in decoder.feed(chunk):
                            accumulated += delta
                            yield format_event(
                                {"type": "delta", "content": delta, "accumulated": accumulated}
                            )
                        if decoder.done:
                            break

                for delta in decoder.flush():
                    accumulated += delta
                    yield format_event(
                        {"type": "delta", "content": delta, "accumulated": accumulated}
                    )

                ai_message = self._store_reply(db, turn, accumulated)
                self._record_mood(db, turn, mood_update, accumulated, now)
                finalized = True
            except Exception:
                logger.exception(f"Streaming error in session {turn.session_id}")
                finalized = True
                db.rollback()
                if user_message is not None and ai_message is None:
                    ai_message = store_message(
                        db, turn.session_id, "assistant", ERROR_REPLY_FALLBACK
                    )
                yield format_event(
                    {
                        "type": "error",
                        "error": STREAM_ERROR,
                        "userMessage": serialize_message(user_message),
                        "aiMessage": serialize_message(ai_message),
                    }
                )
                return

            yield format_event(
                {
                    "type": "done",
                    "userMessage": serialize_message(user_message),
                    "aiMessage": serialize_message(ai_message),
                }
            )
        finally:
            if user_message is not None and not finalized:
                # Client went away mid-stream: keep what was generated so far
                logger.info(f"Client disconnected from session {turn.session_id}")
                try:
                    if ai_message is None:
                        ai_message = self._store_reply(db, turn, accumulated)
                    self._record_mood(db, turn, mood_update, accumulated, utc_now())
                except Exception:
                    logger.exception(
                        f"Could not store partial reply for session {turn.session_id}"
                    )
            db.close()

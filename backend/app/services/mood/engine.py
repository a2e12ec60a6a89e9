"""
Mood engine: pure functions that pick the character's mood for a turn.

``compute_mood`` evaluates an ordered decision list where the first rule that
fires decides the result:

1. content keywords (every 5th message only)
2. time of day
3. user response latency
4. engagement and conversation length
5. a 10% random nudge towards an upbeat mood
6. the current mood, unchanged
"""

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Sequence

from app.services.mood.definitions import (
    Mood,
    TRANSITION_MESSAGES,
    normalize_mood,
)
from app.services.mood.keywords import CATEGORY_ORDER, load_keyword_tables

CONTENT_CHECK_INTERVAL = 5
RANDOM_MOOD_PROBABILITY = 0.10
RANDOM_MOOD_CHOICES = (Mood.HAPPY, Mood.PLAYFUL, Mood.EXCITED)

MIN_INTENSITY = 1
MAX_INTENSITY = 10


@dataclass
class MoodTriggers:
    """Signals the engine looks at for one turn."""

    user_response_time_minutes: int = 0
    conversation_length: int = 0
    time_since_last_message_minutes: int = 0
    user_engagement: int = 5
    user_message_content: Optional[str] = None
    message_count: int = 0


def _clamp(value: int, low: int = MIN_INTENSITY, high: int = MAX_INTENSITY) -> int:
    return max(low, min(high, value))


def classify_content(
    text: Optional[str],
    tables: Optional[Mapping[Mood, Sequence[str]]] = None,
) -> Optional[Mood]:
    """
    Classify a message by case-insensitive substring match against the
    keyword tables.

    Args:
        text: Raw user message
        tables: Optional override of the keyword tables (mood -> phrases)

    Returns:
        The first category (jealous, sad, happy, romantic, then playful,
        excited, lonely) with at least one hit, or None
    """
    if not text:
        return None
    if tables is None:
        tables = load_keyword_tables()

    lowered = text.lower()
    for mood in CATEGORY_ORDER:
        for phrase in tables.get(mood, ()):
            if phrase and phrase in lowered:
                return mood
    return None


def should_check_content(message_count: int) -> bool:
    """Content analysis only runs on every fifth message."""
    return message_count > 0 and message_count % CONTENT_CHECK_INTERVAL == 0


def _time_of_day_mood(triggers: MoodTriggers, hour: int) -> Optional[Mood]:
    # Late night
    if hour >= 22 or hour <= 6:
        if triggers.time_since_last_message_minutes > 60:
            return Mood.LONELY
        if triggers.user_engagement > 7:
            return Mood.ROMANTIC

    # Morning
    if 6 <= hour <= 10:
        if triggers.conversation_length < 10:
            return Mood.EXCITED

    # Afternoon
    if 14 <= hour <= 18:
        if triggers.user_engagement > 5:
            return Mood.PLAYFUL

    return None


def compute_mood(
    triggers: MoodTriggers,
    current_mood=None,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> Mood:
    """
    Pick the mood for this turn.

    Args:
        triggers: Signals for the turn
        current_mood: Stored mood of the session (unset resolves to happy)
        now: Local wall-clock time used for the time-of-day rules
        rng: Random source for the random nudge

    Returns:
        The mood chosen by the first rule that fires
    """
    current = normalize_mood(current_mood)
    if now is None:
        now = datetime.now()
    if rng is None:
        rng = random.Random()

    if should_check_content(triggers.message_count) and triggers.user_message_content:
        content_mood = classify_content(triggers.user_message_content)
        if content_mood is not None:
            return content_mood

    time_mood = _time_of_day_mood(triggers, now.hour)
    if time_mood is not None:
        return time_mood

    if triggers.user_response_time_minutes > 120:
        return Mood.LONELY
    if triggers.user_response_time_minutes > 30:
        return Mood.JEALOUS

    if triggers.conversation_length > 50 and triggers.user_engagement > 7:
        return Mood.ROMANTIC
    if triggers.user_engagement > 8:
        return Mood.HAPPY
    if triggers.user_engagement < 3:
        return Mood.SAD

    if rng.random() < RANDOM_MOOD_PROBABILITY:
        return rng.choice(RANDOM_MOOD_CHOICES)

    return current


def compute_intensity(triggers: MoodTriggers, mood) -> int:
    """How strongly the mood should show in the reply, from 1 to 10."""
    intensity = 5 + triggers.user_engagement // 2

    if normalize_mood(mood) == Mood.ROMANTIC and triggers.conversation_length > 30:
        intensity += 2
    if triggers.time_since_last_message_minutes > 60:
        intensity += 1

    return _clamp(intensity)


def compute_engagement(
    message_count: int,
    avg_response_time_minutes: float,
    session_duration_minutes: float,
) -> int:
    """Score the user's engagement with the session from 1 to 10."""
    score = 5

    if message_count > 20:
        score += 2
    elif message_count > 10:
        score += 1

    if avg_response_time_minutes < 5:
        score += 2
    elif avg_response_time_minutes < 15:
        score += 1

    if session_duration_minutes > 60:
        score += 1

    return _clamp(score)


def transition_message(old_mood, new_mood) -> Optional[str]:
    """Canned line announcing a mood change, or None if there is none."""
    old = normalize_mood(old_mood)
    new = normalize_mood(new_mood)
    if old == new:
        return None
    return TRANSITION_MESSAGES.get(f"{old.value}->{new.value}")

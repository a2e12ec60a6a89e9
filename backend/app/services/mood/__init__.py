"""
Mood engine package.
"""

from app.services.mood.definitions import (
    Mood,
    MOOD_DEFINITIONS,
    get_mood_profile,
    normalize_mood,
)
from app.services.mood.engine import (
    MoodTriggers,
    classify_content,
    compute_engagement,
    compute_intensity,
    compute_mood,
    transition_message,
)

__all__ = [
    "Mood",
    "MOOD_DEFINITIONS",
    "MoodTriggers",
    "classify_content",
    "compute_engagement",
    "compute_intensity",
    "compute_mood",
    "get_mood_profile",
    "normalize_mood",
    "transition_message",
]

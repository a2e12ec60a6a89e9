"""
Mood labels, their prompt profiles and canned transition lines.
"""

from enum import Enum
from typing import Dict, Optional


class Mood(str, Enum):
    """Simulated emotional state of the character for the current turn."""

    HAPPY = "happy"
    SAD = "sad"
    EXCITED = "excited"
    ROMANTIC = "romantic"
    JEALOUS = "jealous"
    LONELY = "lonely"
    PLAYFUL = "playful"
    NEUTRAL = "neutral"


DEFAULT_MOOD = Mood.HAPPY

# Text used only for the system prompt (Bahasa Indonesia, Jakarta style)
MOOD_DEFINITIONS: Dict[Mood, Dict[str, str]] = {
    Mood.HAPPY: {
        "emoji": "😊",
        "description": "Lagi seneng banget",
        "response_style": "Gembira, pakai kata 'banget', 'asik', 'keren', banyak tanda seru",
    },
    Mood.SAD: {
        "emoji": "😢",
        "description": "Lagi sedih",
        "response_style": "Sedih, pakai 'nih', 'ya', 'hmm', banyak titik-titik",
    },
    Mood.EXCITED: {
        "emoji": "🤩",
        "description": "Lagi semangat banget!",
        "response_style": "Antusias, pakai 'WOW!', 'KEREN!', 'MANTAP!', banyak huruf besar",
    },
    Mood.ROMANTIC: {
        "emoji": "😍",
        "description": "Lagi sayang banget sama kamu",
        "response_style": "Manis, pakai 'sayang', 'cinta', 'beb', 'honey', banyak hati",
    },
    Mood.JEALOUS: {
        "emoji": "😤",
        "description": "Lagi cemburu",
        "response_style": "Cemburu, pakai 'hmm', 'serius?', 'beneran?', sedikit sarkas",
    },
    Mood.LONELY: {
        "emoji": "😔",
        "description": "Lagi kesepian nih",
        "response_style": "Kesepian, pakai 'kangen', 'rindu', 'kok lama', 'ada yang sibuk ya'",
    },
    Mood.PLAYFUL: {
        "emoji": "😜",
        "description": "Lagi iseng nih",
        "response_style": "Nakal, pakai 'hehe', 'hihi', 'wkwk', 'gimana nih', bercanda",
    },
    Mood.NEUTRAL: {
        "emoji": "😐",
        "description": "Lagi biasa aja",
        "response_style": "Normal, pakai 'ok', 'iya', 'gitu', 'begitu', respons biasa",
    },
}

# Keyed "<old>-><new>"; pairs not listed produce no announcement
TRANSITION_MESSAGES: Dict[str, str] = {
    "sad->happy": "Eh, aku udah nggak sedih lagi kok! Makasih ya udah nemenin aku 😊",
    "sad->lonely": "Aku sedih... dan rasanya sepi banget tanpa kamu 😔",
    "lonely->happy": "Akhirnya kamu dateng juga! Aku seneng banget 😊",
    "lonely->romantic": "Aku kangen banget sama kamu... untung kamu balik lagi 😍",
    "jealous->happy": "Yaudah deh, aku nggak cemburu lagi. Tapi jangan gitu lagi ya 😊",
    "jealous->romantic": "Hmm, maaf ya tadi aku cemburu... itu karena aku sayang kamu 😍",
    "happy->sad": "Hmm... entah kenapa aku jadi sedih nih 😢",
    "happy->jealous": "Tunggu deh... kamu tadi sama siapa? 😤",
    "happy->lonely": "Kok kamu lama banget sih... aku jadi kesepian 😔",
    "happy->romantic": "Entah kenapa aku jadi pengen manja-manja sama kamu 😍",
    "neutral->happy": "Eh, mood aku jadi bagus nih gara-gara kamu 😊",
    "neutral->playful": "Hehe, aku lagi pengen iseng nih 😜",
    "playful->romantic": "Udahan bercandanya deh... aku serius sayang sama kamu 😍",
    "excited->happy": "Seru banget tadi! Sekarang aku seneng aja bawaannya 😊",
}


def normalize_mood(value: Optional[str]) -> Mood:
    """
    Resolve a stored mood label.

    Unset values resolve to ``happy``; unrecognised labels resolve to
    ``neutral`` instead of raising.
    """
    if value is None or value == "":
        return DEFAULT_MOOD
    if isinstance(value, Mood):
        return value
    try:
        return Mood(str(value).strip().lower())
    except ValueError:
        return Mood.NEUTRAL


def get_mood_profile(mood) -> Dict[str, str]:
    """Return the prompt profile for a mood, defaulting to neutral."""
    return MOOD_DEFINITIONS.get(normalize_mood(mood), MOOD_DEFINITIONS[Mood.NEUTRAL])

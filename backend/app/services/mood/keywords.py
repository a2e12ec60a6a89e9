"""
Keyword tables for content-based mood classification.

The word lists are data files in ``keywords/``; they are read once per
process and shared.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Tuple

from app.services.mood.definitions import Mood

logger = logging.getLogger(__name__)

KEYWORDS_DIR = Path(__file__).parent / "keywords"

# Checked in this order; the first category with a hit wins
PRIMARY_CATEGORIES: Tuple[Mood, ...] = (Mood.JEALOUS, Mood.SAD, Mood.HAPPY, Mood.ROMANTIC)
SECONDARY_CATEGORIES: Tuple[Mood, ...] = (Mood.PLAYFUL, Mood.EXCITED, Mood.LONELY)
CATEGORY_ORDER: Tuple[Mood, ...] = PRIMARY_CATEGORIES + SECONDARY_CATEGORIES


def _read_list(path: Path) -> List[str]:
    with path.open(encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, list):
        raise ValueError(f"Keyword file {path.name} must contain a JSON array")
    return [str(item).lower() for item in data if str(item).strip()]


@lru_cache(maxsize=1)
def load_keyword_tables() -> Dict[Mood, Tuple[str, ...]]:
    """Load every category's trigger list from disk."""
    tables = {}
    for mood in CATEGORY_ORDER:
        tables[mood] = tuple(_read_list(KEYWORDS_DIR / f"{mood.value}.json"))
    logger.debug(
        "Loaded mood keyword tables: "
        + ", ".join(f"{mood.value}={len(words)}" for mood, words in tables.items())
    )
    return tables

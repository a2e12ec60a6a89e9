"""Utility functions for datetime operations."""

from datetime import datetime, UTC, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now():
    """Return the current UTC datetime in a timezone-aware format.

    This is the preferred replacement for the deprecated datetime.utcnow().
    """
    return datetime.now(UTC)


def make_aware(dt):
    """Convert a naive datetime to UTC-aware datetime."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def minutes_between(earlier, later) -> int:
    """Whole minutes elapsed from ``earlier`` to ``later`` (0 if unknown or negative)."""
    if earlier is None or later is None:
        return 0
    delta = make_aware(later) - make_aware(earlier)
    return max(0, int(delta.total_seconds() // 60))


def get_zone(name: str):
    """Resolve an IANA timezone name, falling back to UTC."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string as sent by browsers (``Z`` suffix allowed)."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None

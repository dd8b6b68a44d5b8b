"""Time-related utility functions."""

from datetime import datetime, timezone
from typing import Any, Optional


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp value into a UTC datetime.

    Accepts datetimes, ISO 8601 strings (including a trailing "Z") and
    epoch seconds. Anything else yields None rather than raising.

    Args:
        value: Raw timestamp value

    Returns:
        Timezone-aware UTC datetime, or None if the value is unusable
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        # Offset pushes the instant outside the representable range
        return None


def format_timestamp(dt: Optional[datetime]) -> str:
    """Format a datetime as "YYYY-MM-DD HH:MM".

    Args:
        dt: Datetime to format

    Returns:
        Formatted string, or "-" for a missing value
    """
    if dt is None:
        return "-"
    return dt.strftime("%Y-%m-%d %H:%M")


def format_date(dt: Optional[datetime]) -> str:
    """Format a datetime as a long date like "March 4, 2025"."""
    if dt is None:
        return "-"
    return f"{dt.strftime('%B')} {dt.day}, {dt.year}"

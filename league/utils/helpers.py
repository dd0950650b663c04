"""
Utility helper functions for safe data handling.
"""
from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the form stored in the database)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to naive UTC.

    Aware datetimes are converted to UTC first; naive ones are assumed to
    already be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def safe_strip(value: Any) -> str:
    """
    Safely strip whitespace from a value, handling None.

    Args:
        value: Any value to strip

    Returns:
        Stripped string or empty string if None
    """
    if value is None:
        return ""
    return str(value).strip()


def safe_int(value: Any, default: int = 0) -> int:
    """
    Safely convert value to int, handling None and invalid values.

    Args:
        value: Any value to convert
        default: Default int if conversion fails

    Returns:
        Integer or default
    """
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def event_label(event_type: str) -> str:
    """Default description for an event: 'yellow_card' -> 'YELLOW CARD'."""
    return safe_strip(event_type).replace("_", " ").upper()

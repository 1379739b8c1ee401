"""
Timestamp parsing. Raw store values -> aware UTC datetimes.
"""

import math
from datetime import datetime, timezone
from typing import Any, Optional


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Accepts datetime, ISO-8601 string (with or without 'Z') or epoch milliseconds.
    Returns None if the value does not denote a valid instant.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def to_epoch_ms(value: datetime) -> int:
    return int(round(ensure_utc(value).timestamp() * 1000))

"""
Recency filter + grouping by trip. Pure logic only.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from shuttle_tracker.domain.geo import is_valid_coordinate
from shuttle_tracker.domain.models import Ping
from shuttle_tracker.domain.timeutil import ensure_utc

logger = logging.getLogger(__name__)


def is_well_formed(ping: Ping) -> bool:
    """Valid instant and finite, in-range coordinates."""
    return isinstance(ping.timestamp, datetime) and is_valid_coordinate(ping.lat, ping.lng)


def filter_recent(
    pings: Iterable[Ping],
    now: datetime,
    window: timedelta,
) -> list[Ping]:
    """
    Keep pings with now - timestamp <= window. Input order is preserved.
    Malformed pings are dropped silently (debug log only).
    """
    now = ensure_utc(now)
    recent: list[Ping] = []
    dropped = 0
    for ping in pings:
        if not is_well_formed(ping):
            dropped += 1
            continue
        if now - ensure_utc(ping.timestamp) <= window:
            recent.append(ping)
    if dropped:
        logger.debug("Dropped %d malformed pings before clustering", dropped)
    return recent


def group_by_trip(pings: Iterable[Ping]) -> dict[str, list[Ping]]:
    """trip_code -> pings in input order."""
    grouped: dict[str, list[Ping]] = {}
    for ping in pings:
        grouped.setdefault(ping.trip_code, []).append(ping)
    return grouped

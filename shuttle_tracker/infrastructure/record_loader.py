"""
Record loader. Raw dict (JSON) -> domain Ping / Trip, and back.
Malformed records are rejected here, before they reach the engine.
"""

import logging
import math
from collections.abc import Iterable
from typing import Any, Optional

from shuttle_tracker.domain.geo import is_valid_coordinate
from shuttle_tracker.domain.models import Ping, Trip
from shuttle_tracker.domain.timeutil import parse_timestamp

logger = logging.getLogger(__name__)


def normalize_trip_code(code: Any) -> str:
    """Trim + upper-case. ValueError if empty or not a string."""
    if not isinstance(code, str) or not code.strip():
        raise ValueError("Trip code must be provided and cannot be empty")
    return code.strip().upper()


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def parse_accuracy(value: Any) -> Optional[float]:
    """Positive finite number or None."""
    acc = _as_number(value)
    if acc is None or not math.isfinite(acc) or acc <= 0:
        return None
    return acc


def load_ping(raw: Any) -> Optional[Ping]:
    """Ping from raw dict. None if any mandatory field is missing or invalid."""
    if not isinstance(raw, dict):
        return None
    trip_code = raw.get("trip_code")
    rider_id = raw.get("rider_id")
    if not isinstance(trip_code, str) or not trip_code.strip():
        return None
    if not isinstance(rider_id, str) or not rider_id.strip():
        return None
    timestamp = parse_timestamp(raw.get("timestamp"))
    if timestamp is None:
        return None
    lat = _as_number(raw.get("lat"))
    lng = _as_number(raw.get("lng"))
    if lat is None or lng is None or not is_valid_coordinate(lat, lng):
        return None
    return Ping(
        trip_code=trip_code.strip(),
        rider_id=rider_id.strip(),
        timestamp=timestamp,
        lat=lat,
        lng=lng,
        accuracy_m=parse_accuracy(raw.get("accuracy_m")),
    )


def load_pings(raw_pings: Iterable[Any]) -> list[Ping]:
    result: list[Ping] = []
    skipped = 0
    for raw in raw_pings:
        ping = load_ping(raw)
        if ping is None:
            skipped += 1
            continue
        result.append(ping)
    if skipped:
        logger.warning("Skipped %d malformed ping records", skipped)
    return result


def load_trips(raw_trips: Iterable[Any]) -> list[Trip]:
    """Trips with a valid code. created_at is kept as None when unparsable. Duplicate codes: first wins."""
    result: list[Trip] = []
    seen: set[str] = set()
    for raw in raw_trips:
        if not isinstance(raw, dict):
            logger.warning("Skipping trip record that is not an object: %r", raw)
            continue
        try:
            code = normalize_trip_code(raw.get("code"))
        except ValueError:
            logger.warning("Skipping trip record without a valid code: %r", raw)
            continue
        if code in seen:
            continue
        seen.add(code)
        result.append(Trip(code=code, created_at=parse_timestamp(raw.get("created_at"))))
    return result


def latest_per_rider(pings: Iterable[Ping]) -> list[Ping]:
    """
    One ping per (trip_code, rider_id): the one with the latest timestamp.
    Equal timestamps: the later one in input order wins. Output keeps the position
    of each key's first occurrence.
    """
    by_key: dict[tuple[str, str], Ping] = {}
    for ping in pings:
        key = (ping.trip_code, ping.rider_id)
        current = by_key.get(key)
        if current is None or ping.timestamp >= current.timestamp:
            by_key[key] = ping
    return list(by_key.values())


def ping_to_record(ping: Ping) -> dict:
    return {
        "trip_code": ping.trip_code,
        "rider_id": ping.rider_id,
        "timestamp": ping.timestamp.isoformat(),
        "lat": ping.lat,
        "lng": ping.lng,
        "accuracy_m": ping.accuracy_m,
    }


def trip_to_record(trip: Trip) -> dict:
    return {
        "code": trip.code,
        "created_at": trip.created_at.isoformat() if trip.created_at else None,
    }

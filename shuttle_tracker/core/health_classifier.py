"""
Trip health. Liveness tier from the age of the newest ping. Pure scoring. No I/O.
"""

import math
from collections.abc import Iterable
from datetime import datetime
from typing import Optional

from shuttle_tracker.core.recency_filter import is_well_formed
from shuttle_tracker.domain.constraints import HealthThresholds
from shuttle_tracker.domain.models import HealthStatus, HealthTier, Ping
from shuttle_tracker.domain.timeutil import ensure_utc

NO_PINGS_MESSAGE = "No riders have joined or updated location for this trip yet."
NO_VALID_PING_MESSAGE = "Could not determine the last valid update time for this trip."


def _round_minutes(minutes: float) -> int:
    """Half-up rounding (2.5 -> 3)."""
    return int(math.floor(minutes + 0.5))


def latest_timestamp(pings: Iterable[Ping]) -> Optional[datetime]:
    """Newest timestamp among well-formed pings, None if there is none."""
    latest: Optional[datetime] = None
    for ping in pings:
        if not is_well_formed(ping):
            continue
        ts = ensure_utc(ping.timestamp)
        if latest is None or ts > latest:
            latest = ts
    return latest


def classify_trip(
    trip_code: str,
    trip_pings: list[Ping],
    now: datetime,
    thresholds: HealthThresholds,
) -> HealthStatus:
    if not trip_pings:
        return HealthStatus(trip_code, HealthTier.NO_SIGNAL, NO_PINGS_MESSAGE, None)

    last_update = latest_timestamp(trip_pings)
    if last_update is None:
        return HealthStatus(trip_code, HealthTier.NO_SIGNAL, NO_VALID_PING_MESSAGE, None)

    age_min = (ensure_utc(now) - last_update).total_seconds() / 60.0
    active = f"{thresholds.active_max_min:g}"
    stale = f"{thresholds.stale_max_min:g}"

    if age_min <= thresholds.active_max_min:
        return HealthStatus(
            trip_code,
            HealthTier.ACTIVE,
            f"Trip active. Last update < {active} min ago.",
            last_update,
        )
    if age_min <= thresholds.stale_max_min:
        return HealthStatus(
            trip_code,
            HealthTier.STALE,
            f"Possibly stale. Last update {_round_minutes(age_min)} min ago.",
            last_update,
        )
    return HealthStatus(
        trip_code,
        HealthTier.INACTIVE,
        f"Inactive. Last update > {stale} min ago ({_round_minutes(age_min)} min).",
        last_update,
    )

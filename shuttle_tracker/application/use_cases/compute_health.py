"""
Compute trip health use case. Full ping history, every registered trip.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Optional

from shuttle_tracker.application.config import DEFAULT_HEALTH_THRESHOLDS
from shuttle_tracker.core.health_classifier import classify_trip
from shuttle_tracker.core.recency_filter import group_by_trip
from shuttle_tracker.domain.constraints import HealthThresholds
from shuttle_tracker.domain.models import HealthStatus, Ping, Trip


def compute_health(
    pings: Sequence[Ping],
    trips: Sequence[Trip],
    now: datetime,
    thresholds: Optional[HealthThresholds] = None,
) -> dict[str, HealthStatus]:
    if thresholds is None:
        thresholds = DEFAULT_HEALTH_THRESHOLDS
    by_trip = group_by_trip(pings)
    return {
        trip.code: classify_trip(trip.code, by_trip.get(trip.code, []), now, thresholds)
        for trip in trips
    }

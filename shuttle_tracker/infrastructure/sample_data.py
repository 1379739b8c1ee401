"""
Sample trips for demos: riders scattered around a center point (Lagos).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

import numpy as np

from shuttle_tracker.domain.models import Ping


@dataclass(frozen=True)
class SampleTrip:
    code: str
    center_lat: float
    center_lng: float


SAMPLE_TRIPS = (
    SampleTrip(code="IKI490", center_lat=6.5244, center_lng=3.3792),  # Lagos centro
    SampleTrip(code="ABX123", center_lat=6.6000, center_lng=3.3500),  # Lagos norte
)
RIDERS_PER_TRIP = 10
MAX_OFFSET_DEG = 0.0075  # ~ +/- 800 m
MIN_ACCURACY_M = 5
MAX_ACCURACY_M = 50
MAX_AGE_S = 60.0


def generate_sample_pings(
    now: datetime,
    seed: Optional[int] = None,
    trips: tuple[SampleTrip, ...] = SAMPLE_TRIPS,
) -> List[Ping]:
    """RIDERS_PER_TRIP pings per sample trip, all within the last minute."""
    rng = np.random.default_rng(seed)
    pings: List[Ping] = []
    for trip in trips:
        for i in range(1, RIDERS_PER_TRIP + 1):
            lat_off, lng_off = rng.uniform(-MAX_OFFSET_DEG, MAX_OFFSET_DEG, size=2)
            accuracy = int(rng.integers(MIN_ACCURACY_M, MAX_ACCURACY_M + 1))
            age = float(rng.uniform(0.0, MAX_AGE_S))
            pings.append(
                Ping(
                    trip_code=trip.code,
                    rider_id=f"Rider-{i}-{trip.code[:2]}",
                    timestamp=now - timedelta(seconds=age),
                    lat=trip.center_lat + float(lat_off),
                    lng=trip.center_lng + float(lng_off),
                    accuracy_m=float(accuracy),
                )
            )
    return pings

"""
Compute clusters use case. Orchestrates core. No FastAPI, no I/O.

Flow: pings -> filter_recent -> group_by_trip -> dominant_cluster (per trip)
      -> weighted_center -> Cluster.
"""

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Optional

from shuttle_tracker.application.config import DEFAULT_CLUSTER_PARAMS
from shuttle_tracker.core.centroid import weighted_center
from shuttle_tracker.core.cluster_engine import dominant_cluster
from shuttle_tracker.core.recency_filter import filter_recent, group_by_trip
from shuttle_tracker.domain.constraints import ClusterParams
from shuttle_tracker.domain.models import Cluster, Ping, Trip
from shuttle_tracker.domain.timeutil import ensure_utc

logger = logging.getLogger(__name__)


def total_riders_by_trip(pings: Sequence[Ping]) -> dict[str, int]:
    """Distinct rider_id per trip over the full (unfiltered) history."""
    riders: dict[str, set[str]] = {}
    for ping in pings:
        if ping.trip_code and ping.rider_id:
            riders.setdefault(ping.trip_code, set()).add(ping.rider_id)
    return {code: len(ids) for code, ids in riders.items()}


def assemble_cluster(
    trip_code: str,
    members: list[Ping],
    total_riders: int,
    now: datetime,
) -> Optional[Cluster]:
    """Cluster record for one trip, or None if no center can be computed."""
    center = weighted_center(members)
    if center is None:
        logger.warning("Could not compute center for trip %s; cluster not emitted", trip_code)
        return None
    rider_count = len(members)
    total = max(total_riders, rider_count)
    strength = min(1.0, rider_count / total) if total > 0 else 0.0
    return Cluster(
        trip_code=trip_code,
        center=center,
        strength=strength,
        rider_count=rider_count,
        total_riders=total,
        computed_at=now,
        rider_ids=tuple(p.rider_id for p in members),
    )


def compute_clusters(
    pings: Sequence[Ping],
    trips: Sequence[Trip],
    now: datetime,
    params: Optional[ClusterParams] = None,
) -> dict[str, Cluster]:
    """
    Dominant cluster per registered trip. Trips without a qualifying cluster are absent.
    Pure: same (pings, trips, now, params) -> same result.
    """
    if params is None:
        params = DEFAULT_CLUSTER_PARAMS
    now = ensure_utc(now)
    if not pings or not trips:
        return {}

    recent_by_trip = group_by_trip(filter_recent(pings, now, params.recent_window))
    totals = total_riders_by_trip(pings)
    logger.debug(
        "Clustering %d trips with recent pings (radius=%sm, min_size=%d)",
        len(recent_by_trip), params.radius_m, params.min_cluster_size,
    )

    results: dict[str, Cluster] = {}
    for trip in trips:
        recent = recent_by_trip.get(trip.code)
        if not recent:
            continue
        members = dominant_cluster(recent, params)
        if members is None:
            logger.debug("No cluster for trip %s (%d recent pings)", trip.code, len(recent))
            continue
        cluster = assemble_cluster(trip.code, members, totals.get(trip.code, 0), now)
        if cluster is not None:
            results[trip.code] = cluster
    return results

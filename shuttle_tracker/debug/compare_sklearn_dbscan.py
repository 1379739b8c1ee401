"""
Debug: shadow comparison of the cluster engine against scikit-learn DBSCAN.

Per trip: dominant cluster size from the engine vs largest DBSCAN label
(haversine metric, same radius / min size, same recent pings).
Border points reachable from two clusters may land differently; sizes can then differ by a few.

Usage:
    python -m shuttle_tracker.debug.compare_sklearn_dbscan --data data.json
"""

import argparse
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
from sklearn.cluster import DBSCAN

from shuttle_tracker.application.config import DEFAULT_CLUSTER_PARAMS
from shuttle_tracker.core.cluster_engine import dominant_cluster
from shuttle_tracker.core.recency_filter import filter_recent, group_by_trip
from shuttle_tracker.domain.constraints import ClusterParams
from shuttle_tracker.domain.geo import EARTH_RADIUS_M
from shuttle_tracker.domain.models import Ping
from shuttle_tracker.infrastructure.json_store import JsonPingStore


def sklearn_largest_cluster_size(pings: Sequence[Ping], params: ClusterParams) -> int:
    """Size of the largest DBSCAN cluster (noise excluded). 0 if none."""
    if not pings:
        return 0
    X_rad = np.radians(np.array([[p.lat, p.lng] for p in pings], dtype=float))
    db = DBSCAN(
        eps=params.radius_m / EARTH_RADIUS_M,
        min_samples=params.min_cluster_size,
        algorithm="brute",
        metric="haversine",
    ).fit(X_rad)
    counts = Counter(int(k) for k in db.labels_ if k != -1)
    return max(counts.values()) if counts else 0


def compare_with_sklearn(
    pings: Sequence[Ping],
    now: datetime,
    params: Optional[ClusterParams] = None,
) -> dict[str, dict]:
    """trip_code -> {"n_recent", "engine_size", "sklearn_size", "match"}."""
    if params is None:
        params = DEFAULT_CLUSTER_PARAMS
    by_trip = group_by_trip(filter_recent(pings, now, params.recent_window))
    report: dict[str, dict] = {}
    for code, recent in by_trip.items():
        members = dominant_cluster(recent, params)
        engine_size = len(members) if members else 0
        sk_size = sklearn_largest_cluster_size(recent, params) if len(recent) >= params.min_cluster_size else 0
        report[code] = {
            "n_recent": len(recent),
            "engine_size": engine_size,
            "sklearn_size": sk_size,
            "match": engine_size == sk_size,
        }
    return report


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Compare cluster engine vs sklearn DBSCAN")
    parser.add_argument("--data", type=Path, default=Path("data.json"), help="JSON data file")
    parser.add_argument("--radius-m", type=float, default=DEFAULT_CLUSTER_PARAMS.radius_m)
    parser.add_argument("--min-size", type=int, default=DEFAULT_CLUSTER_PARAMS.min_cluster_size)
    args = parser.parse_args(argv)

    if not args.data.exists():
        print(f"ERROR: no existe el fichero {args.data}")
        return 1
    params = ClusterParams(
        radius_m=args.radius_m,
        min_cluster_size=args.min_size,
        recent_window=DEFAULT_CLUSTER_PARAMS.recent_window,
    )
    snapshot = JsonPingStore(args.data).snapshot()
    report = compare_with_sklearn(snapshot.pings, datetime.now(timezone.utc), params)
    if not report:
        print("No hay pings recientes; nada que comparar.")
        return 0
    print(f"{'trip':<10} {'recent':>6} {'engine':>6} {'sklearn':>7}  match")
    for code, row in report.items():
        print(
            f"{code:<10} {row['n_recent']:>6} {row['engine_size']:>6} "
            f"{row['sklearn_size']:>7}  {'yes' if row['match'] else 'NO'}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

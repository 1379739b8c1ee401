"""
Visual debug. Folium only. No FastAPI. Debug-only.

Recent pings (one color per trip) and the dominant cluster center of each trip
(radius circle, strength in popup).

Usage:
    python -m shuttle_tracker.debug.visualize_clusters --data data.json --out clusters.html
"""

import argparse
import webbrowser
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

import folium

from shuttle_tracker.application.config import DEFAULT_CLUSTER_PARAMS
from shuttle_tracker.application.use_cases.compute_clusters import compute_clusters
from shuttle_tracker.core.recency_filter import filter_recent
from shuttle_tracker.domain.constraints import ClusterParams
from shuttle_tracker.domain.models import Cluster, Ping, Trip
from shuttle_tracker.infrastructure.json_store import JsonPingStore

_COLORS = [
    "red", "blue", "green", "purple", "orange", "darkred", "lightred",
    "beige", "darkblue", "darkgreen", "cadetblue", "darkpurple", "pink",
]
_DEFAULT_CENTER = (6.5244, 3.3792)


def visualize_clusters(
    recent_pings: Sequence[Ping],
    clusters: dict[str, Cluster],
    radius_m: float = DEFAULT_CLUSTER_PARAMS.radius_m,
) -> folium.Map:
    """Map with one CircleMarker per ping and one bus marker + radius circle per cluster."""
    if clusters:
        first = next(iter(clusters.values()))
        center = (first.center.lat, first.center.lng)
    elif recent_pings:
        center = (recent_pings[0].lat, recent_pings[0].lng)
    else:
        center = _DEFAULT_CENTER

    m = folium.Map(location=center, zoom_start=14)

    trip_codes = sorted({p.trip_code for p in recent_pings} | set(clusters))
    color_by_trip = {code: _COLORS[i % len(_COLORS)] for i, code in enumerate(trip_codes)}

    for ping in recent_pings:
        folium.CircleMarker(
            location=(ping.lat, ping.lng),
            radius=4,
            color=color_by_trip[ping.trip_code],
            fill=True,
            fill_opacity=0.8,
            popup=f"{ping.rider_id} ({ping.trip_code}) ±{ping.effective_accuracy_m:.0f} m",
        ).add_to(m)

    for code, cluster in clusters.items():
        color = color_by_trip[code]
        label = (
            f"Trip {code}: {cluster.rider_count}/{cluster.total_riders} riders, "
            f"strength {cluster.strength:.0%}"
        )
        folium.Circle(
            location=(cluster.center.lat, cluster.center.lng),
            radius=radius_m,
            color=color,
            fill=False,
            weight=2,
        ).add_to(m)
        folium.Marker(
            (cluster.center.lat, cluster.center.lng),
            popup=label,
            icon=folium.Icon(color=color, icon="bus", prefix="fa"),
        ).add_to(m)

    return m


def build_map(
    pings: Sequence[Ping],
    trips: Sequence[Trip],
    now: datetime,
    params: Optional[ClusterParams] = None,
) -> folium.Map:
    if params is None:
        params = DEFAULT_CLUSTER_PARAMS
    clusters = compute_clusters(pings, trips, now, params)
    recent = filter_recent(pings, now, params.recent_window)
    return visualize_clusters(recent, clusters, radius_m=params.radius_m)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Render shuttle clusters on a folium map")
    parser.add_argument("--data", type=Path, default=Path("data.json"), help="JSON data file")
    parser.add_argument("--out", type=Path, default=Path("clusters.html"), help="HTML output")
    parser.add_argument("--open", action="store_true", help="Open the map in a browser")
    args = parser.parse_args(argv)

    if not args.data.exists():
        print(f"ERROR: no existe el fichero {args.data}")
        return 1
    snapshot = JsonPingStore(args.data).snapshot()
    m = build_map(snapshot.pings, snapshot.trips, datetime.now(timezone.utc))
    m.save(str(args.out))
    print(f"Mapa guardado en: {args.out}")
    if args.open:
        webbrowser.open(args.out.resolve().as_uri())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

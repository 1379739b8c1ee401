"""
Cluster engine. Density-based grouping (DBSCAN-like) over one trip's recent pings.
Pure logic only. No FastAPI, no I/O. All pairs distances, no spatial index.

Deterministic: points are scanned in input order, expansion uses a FIFO queue,
and the dominant cluster is picked by (size desc, seed index asc).
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from shuttle_tracker.domain.constraints import ClusterParams
from shuttle_tracker.domain.geo import haversine_matrix_m
from shuttle_tracker.domain.models import Ping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointCluster:
    """Indices into the trip's point list. members[0] == seed (first core point)."""
    seed: int
    members: tuple[int, ...]

    @property
    def size(self) -> int:
        return len(self.members)


def neighbor_lists(pings: Sequence[Ping], radius_m: float) -> List[np.ndarray]:
    """For each point, indices of the other points within radius_m (ascending)."""
    n = len(pings)
    if n == 0:
        return []
    lats = np.array([p.lat for p in pings], dtype=float)
    lngs = np.array([p.lng for p in pings], dtype=float)
    within = haversine_matrix_m(lats, lngs) <= radius_m
    np.fill_diagonal(within, False)
    return [np.flatnonzero(within[i]) for i in range(n)]


def find_clusters(
    pings: Sequence[Ping],
    radius_m: float,
    min_cluster_size: int,
) -> List[PointCluster]:
    """
    Scan points in order; each unvisited core point seeds a new cluster which grows
    breadth-first over unvisited points. Border points (non-core) join but do not expand.

    A point is marked visited as soon as the scan reaches it, core or not. A non-core
    point scanned before any core neighbour stays noise and is never absorbed later,
    so a cluster may end up smaller than min_cluster_size.
    """
    neighbors = neighbor_lists(pings, radius_m)
    is_core = [len(nbrs) + 1 >= min_cluster_size for nbrs in neighbors]
    visited = np.zeros(len(pings), dtype=bool)
    clusters: List[PointCluster] = []

    for i in range(len(pings)):
        if visited[i]:
            continue
        visited[i] = True
        if not is_core[i]:
            continue
        members = [i]
        queue = deque(int(j) for j in neighbors[i] if not visited[j])
        while queue:
            j = queue.popleft()
            if visited[j]:
                continue
            visited[j] = True
            members.append(j)
            if is_core[j]:
                queue.extend(int(k) for k in neighbors[j] if not visited[k])
        clusters.append(PointCluster(seed=i, members=tuple(members)))

    return clusters


def select_dominant(clusters: Sequence[PointCluster]) -> Optional[PointCluster]:
    """Largest cluster. Tie-break: smallest seed index (earliest core point in input order)."""
    if not clusters:
        return None
    return min(clusters, key=lambda c: (-c.size, c.seed))


def dominant_cluster(pings: Sequence[Ping], params: ClusterParams) -> Optional[List[Ping]]:
    """
    Member pings of the dominant cluster in discovery order, or None if the trip
    has fewer than min_cluster_size points or no core point at all.
    """
    if len(pings) < params.min_cluster_size:
        return None
    clusters = find_clusters(pings, params.radius_m, params.min_cluster_size)
    best = select_dominant(clusters)
    if best is None:
        return None
    if len(clusters) > 1:
        logger.debug(
            "%d clusters found (sizes %s); keeping seed=%d size=%d",
            len(clusters), [c.size for c in clusters], best.seed, best.size,
        )
    return [pings[i] for i in best.members]

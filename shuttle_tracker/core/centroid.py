"""
Accuracy-weighted centroid of a cluster's pings.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from shuttle_tracker.domain.models import GeoPoint, Ping

logger = logging.getLogger(__name__)

MIN_ACCURACY_M = 1.0


def accuracy_weight(ping: Ping) -> float:
    """1 / max(accuracy, 1). More precise points weigh more."""
    return 1.0 / max(ping.effective_accuracy_m, MIN_ACCURACY_M)


def weighted_center(pings: Sequence[Ping]) -> Optional[GeoPoint]:
    """
    Weighted mean of (lat, lng) with accuracy_weight.
    Zero total weight -> plain mean of points with finite coordinates.
    No usable point -> None.
    """
    if not pings:
        return None
    lats = np.array([p.lat for p in pings], dtype=float)
    lngs = np.array([p.lng for p in pings], dtype=float)
    weights = np.array([accuracy_weight(p) for p in pings], dtype=float)

    valid = np.isfinite(lats) & np.isfinite(lngs)
    usable = valid & np.isfinite(weights)
    total_weight = float(weights[usable].sum())
    if total_weight > 0:
        return GeoPoint(
            lat=float((lats[usable] * weights[usable]).sum() / total_weight),
            lng=float((lngs[usable] * weights[usable]).sum() / total_weight),
        )

    if not valid.any():
        logger.warning("No point with valid coordinates; cannot compute a center")
        return None
    logger.warning("Total weight is zero; falling back to unweighted mean of %d points", int(valid.sum()))
    return GeoPoint(lat=float(lats[valid].mean()), lng=float(lngs[valid].mean()))

"""
Geodesy helpers. Haversine on a spherical Earth (mean radius).
"""

import math

import numpy as np

EARTH_RADIUS_M = 6371000.0


def is_valid_coordinate(lat: float, lng: float) -> bool:
    """Finite numbers inside [-90, 90] x [-180, 180]."""
    if isinstance(lat, bool) or isinstance(lng, bool):
        return False
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    lat1_r = math.radians(lat1)
    lat2_r = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    a = min(1.0, a)
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine_matrix_m(lats: np.ndarray, lngs: np.ndarray) -> np.ndarray:
    """All-pairs Haversine distances (N, N) in meters. Same formula as haversine_m."""
    lat_r = np.radians(np.asarray(lats, dtype=float))
    lng_r = np.radians(np.asarray(lngs, dtype=float))
    dlat = lat_r[None, :] - lat_r[:, None]
    dlng = lng_r[None, :] - lng_r[:, None]
    a = (
        np.sin(dlat / 2) ** 2
        + np.cos(lat_r)[:, None] * np.cos(lat_r)[None, :] * np.sin(dlng / 2) ** 2
    )
    a = np.clip(a, 0.0, 1.0)
    d = 2 * EARTH_RADIUS_M * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    # simetría exacta
    return np.minimum(d, d.T)

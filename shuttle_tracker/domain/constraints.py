"""
Domain constraints. Dataclasses only. No FastAPI, no external deps beyond dataclasses/typing.
"""

import math
from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class ClusterParams:
    radius_m: float = 1000.0
    min_cluster_size: int = 2
    recent_window: timedelta = timedelta(minutes=5)

    def __post_init__(self) -> None:
        if not self.radius_m > 0:
            raise ValueError(f"radius_m must be > 0, got {self.radius_m!r}")
        if self.min_cluster_size < 1:
            raise ValueError(f"min_cluster_size must be >= 1, got {self.min_cluster_size!r}")
        if self.recent_window < timedelta(0):
            raise ValueError("recent_window must not be negative")


@dataclass(frozen=True)
class HealthThresholds:
    """Age limits (minutes, inclusive) for ACTIVE and STALE. Older is INACTIVE."""
    active_max_min: float = 2.0
    stale_max_min: float = 10.0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.active_max_min) and math.isfinite(self.stale_max_min)):
            raise ValueError(
                f"thresholds must be finite, got {self.active_max_min!r}, {self.stale_max_min!r}"
            )
        if self.active_max_min < 0 or self.stale_max_min < self.active_max_min:
            raise ValueError(
                "expected 0 <= active_max_min <= stale_max_min, "
                f"got {self.active_max_min!r}, {self.stale_max_min!r}"
            )


@dataclass(frozen=True)
class RefreshPolicy:
    """
    Polling policy for clients (map + status badges).
    trigger: "interval" = poll every N seconds; "manual" = only on user request.
    """
    clusters_interval_s: float = 5.0
    health_interval_s: float = 15.0
    trigger: str = "interval"

    def __post_init__(self) -> None:
        if self.trigger not in ("interval", "manual"):
            raise ValueError(f"trigger must be 'interval' or 'manual', got {self.trigger!r}")
        if self.clusters_interval_s <= 0 or self.health_interval_s <= 0:
            raise ValueError("refresh intervals must be > 0")

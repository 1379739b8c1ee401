"""
Domain models. Dataclasses only. No FastAPI, no external deps beyond dataclasses/typing.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

# Precisión por defecto (m) cuando el ping no la trae o no es válida.
DEFAULT_ACCURACY_M = 50.0


@dataclass(frozen=True)
class Ping:
    """One rider's location report for a trip."""
    trip_code: str
    rider_id: str
    timestamp: datetime
    lat: float
    lng: float
    accuracy_m: Optional[float] = None

    @property
    def effective_accuracy_m(self) -> float:
        """accuracy_m if usable (> 0), DEFAULT_ACCURACY_M otherwise."""
        if self.accuracy_m is None or not self.accuracy_m > 0:
            return DEFAULT_ACCURACY_M
        return self.accuracy_m


@dataclass(frozen=True)
class Trip:
    code: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float


@dataclass(frozen=True)
class Cluster:
    """Dominant grouping of a trip's recent riders. Recomputed on every call."""
    trip_code: str
    center: GeoPoint
    strength: float
    rider_count: int
    total_riders: int
    computed_at: datetime
    rider_ids: tuple[str, ...]


class HealthTier(str, Enum):
    ACTIVE = "ACTIVE"
    STALE = "STALE"
    INACTIVE = "INACTIVE"
    NO_SIGNAL = "NO_SIGNAL"


@dataclass(frozen=True)
class HealthStatus:
    trip_code: str
    tier: HealthTier
    message: str
    last_update: Optional[datetime] = None


@dataclass(frozen=True)
class Snapshot:
    """Immutable read of the store: full ping history + trip registry."""
    pings: tuple[Ping, ...]
    trips: tuple[Trip, ...]

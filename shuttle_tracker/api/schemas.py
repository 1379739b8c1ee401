"""
API request/response schemas. Pydantic only in api layer.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from shuttle_tracker.domain.models import Cluster, HealthStatus, Ping, Trip


class CreateTripRequest(BaseModel):
    trip_code: str


class LogPingRequest(BaseModel):
    trip_code: str
    rider_id: str
    lat: float
    lng: float
    accuracy_m: Optional[float] = None


class PingSchema(BaseModel):
    trip_code: str
    rider_id: str
    timestamp: datetime
    lat: float
    lng: float
    accuracy_m: Optional[float] = None

    @classmethod
    def from_domain(cls, ping: Ping) -> "PingSchema":
        return cls(
            trip_code=ping.trip_code,
            rider_id=ping.rider_id,
            timestamp=ping.timestamp,
            lat=ping.lat,
            lng=ping.lng,
            accuracy_m=ping.accuracy_m,
        )


class TripSchema(BaseModel):
    code: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, trip: Trip) -> "TripSchema":
        return cls(code=trip.code, created_at=trip.created_at)


class CenterSchema(BaseModel):
    lat: float
    lng: float


class ClusterSchema(BaseModel):
    trip_code: str
    center: CenterSchema
    strength: float
    rider_count: int
    total_riders: int
    computed_at: datetime
    rider_ids: list[str]

    @classmethod
    def from_domain(cls, cluster: Cluster) -> "ClusterSchema":
        return cls(
            trip_code=cluster.trip_code,
            center=CenterSchema(lat=cluster.center.lat, lng=cluster.center.lng),
            strength=cluster.strength,
            rider_count=cluster.rider_count,
            total_riders=cluster.total_riders,
            computed_at=cluster.computed_at,
            rider_ids=list(cluster.rider_ids),
        )


class HealthStatusSchema(BaseModel):
    trip_code: str
    status: str  # ACTIVE | STALE | INACTIVE | NO_SIGNAL
    message: str
    last_update: Optional[datetime] = None

    @classmethod
    def from_domain(cls, health: HealthStatus) -> "HealthStatusSchema":
        return cls(
            trip_code=health.trip_code,
            status=health.tier.value,
            message=health.message,
            last_update=health.last_update,
        )


class RefreshPolicySchema(BaseModel):
    clusters_interval_s: float
    health_interval_s: float
    trigger: str


class CreateTripResponse(BaseModel):
    success: bool
    trip_code: str


class MessageResponse(BaseModel):
    success: bool
    message: str

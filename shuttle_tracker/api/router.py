"""
API router. Calls application and store only. No business logic.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from shuttle_tracker.api.schemas import (
    ClusterSchema,
    CreateTripRequest,
    CreateTripResponse,
    HealthStatusSchema,
    LogPingRequest,
    MessageResponse,
    PingSchema,
    RefreshPolicySchema,
    TripSchema,
)
from shuttle_tracker.application.config import ServiceSettings
from shuttle_tracker.application.use_cases.compute_clusters import compute_clusters
from shuttle_tracker.application.use_cases.compute_health import compute_health
from shuttle_tracker.infrastructure.json_store import JsonPingStore, UnknownTripError

logger = logging.getLogger(__name__)

router = APIRouter()

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_store(request: Request) -> JsonPingStore:
    return request.app.state.store


def get_settings(request: Request) -> ServiceSettings:
    return request.app.state.settings


def get_clock() -> Clock:
    return utc_now


def parse_since(raw: Optional[str]) -> int:
    """Epoch ms from the query string. Anything unusable falls back to 0."""
    if raw is None or not raw.strip():
        return 0
    try:
        since = int(raw.strip())
    except ValueError:
        logger.warning("Invalid 'since' parameter (%r); defaulting to 0", raw)
        return 0
    if since < 0:
        logger.warning("Invalid 'since' parameter (%d); defaulting to 0", since)
        return 0
    return since


@router.get("/availability")
def get_availability(store: JsonPingStore = Depends(get_store)) -> bool:
    """True if at least one trip is registered."""
    try:
        return store.has_trips()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/pings", response_model=list[PingSchema])
def get_pings(store: JsonPingStore = Depends(get_store)) -> list[PingSchema]:
    try:
        return [PingSchema.from_domain(p) for p in store.list_pings()]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/pings/since", response_model=list[PingSchema])
def get_pings_since(
    since: Optional[str] = None, store: JsonPingStore = Depends(get_store)
) -> list[PingSchema]:
    """
    GET /api/pings/since?since=<epoch ms>
    Pings strictly newer than `since`, newest first. Missing, non-integer or negative values count as 0.
    """
    since_ms = parse_since(since)
    try:
        since_dt = datetime.fromtimestamp(since_ms / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        raise HTTPException(status_code=400, detail=f"'since' out of range: {since_ms}")
    try:
        return [PingSchema.from_domain(p) for p in store.pings_since(since_dt)]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/pings", response_model=PingSchema)
def post_ping(
    request: LogPingRequest,
    store: JsonPingStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> PingSchema:
    """
    POST /api/pings
    Upsert rider location for a registered trip. Server time is the ping timestamp.
    """
    try:
        ping = store.log_ping(
            trip_code=request.trip_code,
            rider_id=request.rider_id,
            lat=request.lat,
            lng=request.lng,
            accuracy_m=request.accuracy_m,
            now=clock(),
        )
        return PingSchema.from_domain(ping)
    except (ValueError, UnknownTripError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/trips", response_model=list[TripSchema])
def get_trips(store: JsonPingStore = Depends(get_store)) -> list[TripSchema]:
    try:
        return [TripSchema.from_domain(t) for t in store.list_trips()]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/trips", response_model=CreateTripResponse, status_code=201)
def post_trip(
    request: CreateTripRequest,
    store: JsonPingStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> CreateTripResponse:
    try:
        trip = store.create_trip(request.trip_code, now=clock())
        return CreateTripResponse(success=True, trip_code=trip.code)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/trips/{code}", response_model=MessageResponse)
def delete_trip(code: str, store: JsonPingStore = Depends(get_store)) -> MessageResponse:
    try:
        removed = store.delete_trip(code)
        return MessageResponse(
            success=True,
            message=f"Trip {code.strip().upper()} and {removed} associated pings deleted.",
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/clusters", response_model=dict[str, ClusterSchema])
def get_clusters(
    store: JsonPingStore = Depends(get_store),
    settings: ServiceSettings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> dict[str, ClusterSchema]:
    """Dominant cluster per trip from a fresh snapshot. Trips without cluster are absent."""
    try:
        snapshot = store.snapshot()
        clusters = compute_clusters(
            snapshot.pings, snapshot.trips, now=clock(), params=settings.cluster_params
        )
        logger.info("Clusters computed for %d of %d trips", len(clusters), len(snapshot.trips))
        return {code: ClusterSchema.from_domain(c) for code, c in clusters.items()}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/trip-health", response_model=dict[str, HealthStatusSchema])
def get_trip_health(
    store: JsonPingStore = Depends(get_store),
    settings: ServiceSettings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> dict[str, HealthStatusSchema]:
    try:
        snapshot = store.snapshot()
        health = compute_health(
            snapshot.pings, snapshot.trips, now=clock(), thresholds=settings.health_thresholds
        )
        return {code: HealthStatusSchema.from_domain(h) for code, h in health.items()}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/refresh-policy", response_model=RefreshPolicySchema)
def get_refresh_policy(settings: ServiceSettings = Depends(get_settings)) -> RefreshPolicySchema:
    """Polling intervals for map (clusters) and status badges (health)."""
    policy = settings.refresh_policy
    return RefreshPolicySchema(
        clusters_interval_s=policy.clusters_interval_s,
        health_interval_s=policy.health_interval_s,
        trigger=policy.trigger,
    )


@router.post("/sample-data", response_model=MessageResponse)
def post_sample_data(
    store: JsonPingStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> MessageResponse:
    try:
        pings = store.seed_sample_trips(now=clock())
        return MessageResponse(success=True, message=f"{len(pings)} sample pings created.")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/data", response_model=MessageResponse)
def delete_all_data(store: JsonPingStore = Depends(get_store)) -> MessageResponse:
    try:
        store.reset()
        return MessageResponse(
            success=True, message="All application data (trips and pings) has been reset."
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))

"""
Flat-file ping/trip store (JSON). Single writer per process, atomic replace on write.

File layout:
{
    "pings": [{"trip_code", "rider_id", "timestamp", "lat", "lng", "accuracy_m"}],
    "trips": [{"code", "created_at"}]
}
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from shuttle_tracker.domain.geo import is_valid_coordinate
from shuttle_tracker.domain.models import Ping, Snapshot, Trip
from shuttle_tracker.domain.timeutil import ensure_utc
from shuttle_tracker.infrastructure.record_loader import (
    latest_per_rider,
    load_pings,
    load_trips,
    normalize_trip_code,
    parse_accuracy,
    ping_to_record,
    trip_to_record,
)
from shuttle_tracker.infrastructure.sample_data import SAMPLE_TRIPS, generate_sample_pings

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Data file could not be written."""


class DuplicateTripError(ValueError):
    pass


class UnknownTripError(LookupError):
    pass


class JsonPingStore:
    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.RLock()

    # --- lectura ---

    def _read_raw(self) -> dict[str, list]:
        try:
            text = self.path.read_text(encoding="utf-8")
            data = json.loads(text)
        except FileNotFoundError:
            return {"pings": [], "trips": []}
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Data file %s is empty or not valid JSON; using empty data", self.path)
            return {"pings": [], "trips": []}
        if not isinstance(data, dict):
            logger.warning("Data file %s does not hold an object; using empty data", self.path)
            return {"pings": [], "trips": []}
        pings = data.get("pings")
        trips = data.get("trips")
        return {
            "pings": pings if isinstance(pings, list) else [],
            "trips": trips if isinstance(trips, list) else [],
        }

    def _load(self) -> tuple[list[Ping], list[Trip]]:
        raw = self._read_raw()
        return latest_per_rider(load_pings(raw["pings"])), load_trips(raw["trips"])

    def snapshot(self) -> Snapshot:
        """Pings + trips from one read of the file."""
        with self._lock:
            pings, trips = self._load()
        return Snapshot(pings=tuple(pings), trips=tuple(trips))

    def list_pings(self) -> list[Ping]:
        return list(self.snapshot().pings)

    def list_trips(self) -> list[Trip]:
        return list(self.snapshot().trips)

    def has_trips(self) -> bool:
        return bool(self.snapshot().trips)

    def pings_since(self, since: datetime) -> list[Ping]:
        """Pings strictly newer than `since`, newest first."""
        since = ensure_utc(since)
        newer = [p for p in self.snapshot().pings if p.timestamp > since]
        return sorted(newer, key=lambda p: p.timestamp, reverse=True)

    # --- escritura ---

    def _write(self, pings: list[Ping], trips: list[Trip]) -> None:
        payload = {
            "pings": [ping_to_record(p) for p in pings],
            "trips": [trip_to_record(t) for t in trips],
        }
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".data-", suffix=".json")
        except OSError as e:
            raise StoreError(f"Could not write data file {self.path}: {e}") from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(f"Could not write data file {self.path}: {e}") from e

    def initialize(self) -> None:
        """Create an empty data file if none exists."""
        with self._lock:
            if self.path.exists():
                logger.info("Data file exists: %s", self.path)
                return
            logger.info("Creating new data file: %s", self.path)
            self._write([], [])

    def create_trip(self, code: Any, now: datetime) -> Trip:
        code = normalize_trip_code(code)
        with self._lock:
            pings, trips = self._load()
            if any(t.code == code for t in trips):
                raise DuplicateTripError(f"Trip code '{code}' already exists")
            trip = Trip(code=code, created_at=ensure_utc(now))
            trips.append(trip)
            self._write(pings, trips)
        logger.info("Trip created: %s", code)
        return trip

    def delete_trip(self, code: Any) -> int:
        """
        Remove trip and all its pings. Returns removed ping count.
        UnknownTripError if the trip was not registered (orphan pings are still removed).
        """
        code = normalize_trip_code(code)
        with self._lock:
            pings, trips = self._load()
            kept_trips = [t for t in trips if t.code != code]
            kept_pings = [p for p in pings if p.trip_code != code]
            removed = len(pings) - len(kept_pings)
            self._write(kept_pings, kept_trips)
        if len(kept_trips) == len(trips):
            logger.warning("Delete of unknown trip %s; removed %d orphan pings", code, removed)
            raise UnknownTripError(
                f"Trip code '{code}' not found, but {removed} associated pings (if any) were removed."
            )
        logger.info("Trip %s deleted with %d pings", code, removed)
        return removed

    def log_ping(
        self,
        trip_code: Any,
        rider_id: Any,
        lat: Any,
        lng: Any,
        accuracy_m: Any,
        now: datetime,
    ) -> Ping:
        """Validate and upsert the rider's location (latest per trip/rider wins). Timestamp = now."""
        code = normalize_trip_code(trip_code)
        if not isinstance(rider_id, str) or not rider_id.strip():
            raise ValueError("Valid rider id must be provided")
        try:
            lat_f, lng_f = float(lat), float(lng)
        except (TypeError, ValueError):
            raise ValueError("Valid latitude and longitude must be provided") from None
        if not is_valid_coordinate(lat_f, lng_f):
            raise ValueError("Valid latitude and longitude must be provided")
        accuracy = parse_accuracy(accuracy_m)
        if accuracy_m is not None and accuracy is None:
            logger.warning("Invalid accuracy %r for %s on trip %s; storing none", accuracy_m, rider_id, code)

        ping = Ping(
            trip_code=code,
            rider_id=rider_id.strip(),
            timestamp=ensure_utc(now),
            lat=lat_f,
            lng=lng_f,
            accuracy_m=accuracy,
        )
        with self._lock:
            pings, trips = self._load()
            if not any(t.code == code for t in trips):
                raise UnknownTripError(
                    f"Invalid trip code '{code}'. This trip does not exist or may have ended."
                )
            self._write(latest_per_rider([*pings, ping]), trips)
        logger.info("Location logged for %s on trip %s", ping.rider_id, code)
        return ping

    def reset(self) -> None:
        with self._lock:
            self._write([], [])
        logger.info("All trips and pings reset")

    def seed_sample_trips(self, now: datetime, seed: Optional[int] = None) -> list[Ping]:
        """Register sample trips (if missing) and replace their pings with fresh sample pings."""
        now = ensure_utc(now)
        sample_codes = {t.code for t in SAMPLE_TRIPS}
        sample_pings = generate_sample_pings(now, seed=seed)
        with self._lock:
            pings, trips = self._load()
            known = {t.code for t in trips}
            for sample in SAMPLE_TRIPS:
                if sample.code not in known:
                    trips.append(Trip(code=sample.code, created_at=now))
            kept = [p for p in pings if p.trip_code not in sample_codes]
            self._write(kept + sample_pings, trips)
        logger.info(
            "Sample data initialised: %d pings for %s",
            len(sample_pings), ", ".join(sorted(sample_codes)),
        )
        return sample_pings

import json
from datetime import datetime, timedelta, timezone

import pytest

from shuttle_tracker.infrastructure.json_store import (
    DuplicateTripError,
    JsonPingStore,
    UnknownTripError,
)
from shuttle_tracker.infrastructure.sample_data import RIDERS_PER_TRIP, SAMPLE_TRIPS

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path) -> JsonPingStore:
    return JsonPingStore(tmp_path / "data.json")


def test_missing_file_reads_as_empty(store: JsonPingStore) -> None:
    snapshot = store.snapshot()
    assert snapshot.pings == ()
    assert snapshot.trips == ()
    assert store.has_trips() is False


def test_corrupt_file_reads_as_empty(store: JsonPingStore) -> None:
    store.path.write_text("{ not json", encoding="utf-8")
    assert store.list_trips() == []


def test_initialize_creates_empty_file(store: JsonPingStore) -> None:
    store.initialize()
    assert json.loads(store.path.read_text(encoding="utf-8")) == {"pings": [], "trips": []}


def test_create_trip_normalizes_code(store: JsonPingStore) -> None:
    trip = store.create_trip("  iki490 ", now=NOW)
    assert trip.code == "IKI490"
    assert store.list_trips() == [trip]
    assert store.has_trips() is True


def test_create_duplicate_trip_fails(store: JsonPingStore) -> None:
    store.create_trip("T1", now=NOW)
    with pytest.raises(DuplicateTripError):
        store.create_trip("t1", now=NOW)


def test_create_trip_rejects_empty_code(store: JsonPingStore) -> None:
    with pytest.raises(ValueError):
        store.create_trip("  ", now=NOW)


def test_log_ping_requires_registered_trip(store: JsonPingStore) -> None:
    with pytest.raises(UnknownTripError):
        store.log_ping("NOPE", "R1", 6.5, 3.3, 10, now=NOW)


@pytest.mark.parametrize("lat, lng", [("abc", 3.3), (None, 3.3), (95.0, 3.3), (6.5, float("nan"))])
def test_log_ping_rejects_bad_coordinates(store: JsonPingStore, lat, lng) -> None:
    store.create_trip("T1", now=NOW)
    with pytest.raises(ValueError):
        store.log_ping("T1", "R1", lat, lng, 10, now=NOW)


def test_log_ping_upserts_latest_location(store: JsonPingStore) -> None:
    store.create_trip("T1", now=NOW)
    store.log_ping("t1", " R1 ", 6.5, 3.3, 10, now=NOW - timedelta(minutes=1))
    store.log_ping("T1", "R2", 6.6, 3.4, None, now=NOW - timedelta(seconds=30))
    store.log_ping("T1", "R1", "6.7", "3.5", -1, now=NOW)

    pings = store.list_pings()
    assert [(p.rider_id, p.lat) for p in pings] == [("R1", 6.7), ("R2", 6.6)]
    assert pings[0].timestamp == NOW
    assert pings[0].accuracy_m is None
    assert pings[0].trip_code == "T1"


def test_pings_since_newest_first(store: JsonPingStore) -> None:
    store.create_trip("T1", now=NOW)
    store.log_ping("T1", "R1", 6.5, 3.3, 10, now=NOW - timedelta(minutes=2))
    store.log_ping("T1", "R2", 6.5, 3.3, 10, now=NOW - timedelta(minutes=1))
    store.log_ping("T1", "R3", 6.5, 3.3, 10, now=NOW)

    since = store.pings_since(NOW - timedelta(minutes=2))
    assert [p.rider_id for p in since] == ["R3", "R2"]


def test_delete_trip_removes_its_pings(store: JsonPingStore) -> None:
    store.create_trip("T1", now=NOW)
    store.create_trip("T2", now=NOW)
    store.log_ping("T1", "R1", 6.5, 3.3, 10, now=NOW)
    store.log_ping("T2", "R1", 6.5, 3.3, 10, now=NOW)

    assert store.delete_trip("t1") == 1
    assert [t.code for t in store.list_trips()] == ["T2"]
    assert [p.trip_code for p in store.list_pings()] == ["T2"]


def test_delete_unknown_trip_raises(store: JsonPingStore) -> None:
    with pytest.raises(UnknownTripError):
        store.delete_trip("NOPE")


def test_reset_clears_everything(store: JsonPingStore) -> None:
    store.create_trip("T1", now=NOW)
    store.log_ping("T1", "R1", 6.5, 3.3, 10, now=NOW)
    store.reset()
    assert store.snapshot().pings == ()
    assert store.snapshot().trips == ()


def test_seed_sample_trips(store: JsonPingStore) -> None:
    store.create_trip("OTHER", now=NOW)
    store.log_ping("OTHER", "R1", 6.5, 3.3, 10, now=NOW)

    store.seed_sample_trips(now=NOW, seed=7)
    store.seed_sample_trips(now=NOW, seed=8)

    codes = [t.code for t in store.list_trips()]
    assert codes == ["OTHER"] + [t.code for t in SAMPLE_TRIPS]
    pings = store.list_pings()
    assert len(pings) == 1 + RIDERS_PER_TRIP * len(SAMPLE_TRIPS)
    for p in pings:
        if p.trip_code == "OTHER":
            continue
        assert NOW - timedelta(minutes=1) <= p.timestamp <= NOW
        assert 5 <= p.accuracy_m <= 50


def test_file_is_readable_by_a_fresh_store(store: JsonPingStore) -> None:
    store.create_trip("T1", now=NOW)
    store.log_ping("T1", "R1", 6.5, 3.3, 10, now=NOW)
    again = JsonPingStore(store.path)
    assert again.snapshot() == store.snapshot()

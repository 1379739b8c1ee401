import logging
from datetime import datetime, timedelta, timezone

import pytest

from shuttle_tracker.domain.models import Ping
from shuttle_tracker.domain.timeutil import parse_timestamp, to_epoch_ms
from shuttle_tracker.infrastructure.record_loader import (
    latest_per_rider,
    load_ping,
    load_pings,
    load_trips,
    normalize_trip_code,
    ping_to_record,
)

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _raw(**overrides) -> dict:
    raw = {
        "trip_code": "T1",
        "rider_id": "R1",
        "timestamp": "2026-01-01T12:00:00.000Z",
        "lat": 6.5244,
        "lng": 3.3792,
        "accuracy_m": 12,
    }
    raw.update(overrides)
    return raw


def test_load_ping_valid_record() -> None:
    ping = load_ping(_raw())
    assert ping == Ping(
        trip_code="T1",
        rider_id="R1",
        timestamp=NOW,
        lat=6.5244,
        lng=3.3792,
        accuracy_m=12.0,
    )


def test_load_ping_accepts_epoch_millis() -> None:
    ping = load_ping(_raw(timestamp=to_epoch_ms(NOW)))
    assert ping is not None
    assert ping.timestamp == NOW


@pytest.mark.parametrize(
    "overrides",
    [
        {"timestamp": "not a date"},
        {"timestamp": None},
        {"lat": "6.52"},
        {"lat": 91.0},
        {"lng": float("nan")},
        {"lng": True},
        {"rider_id": ""},
        {"trip_code": None},
    ],
)
def test_load_ping_rejects_malformed(overrides) -> None:
    assert load_ping(_raw(**overrides)) is None


@pytest.mark.parametrize("accuracy", [None, 0, -5, "ten", float("inf")])
def test_invalid_accuracy_becomes_none(accuracy) -> None:
    ping = load_ping(_raw(accuracy_m=accuracy))
    assert ping is not None
    assert ping.accuracy_m is None


def test_load_pings_skips_and_logs(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        pings = load_pings([_raw(), _raw(lat=None), "junk"])
    assert len(pings) == 1
    assert "Skipped 2 malformed ping records" in caplog.text


def test_load_trips_normalizes_and_dedupes() -> None:
    trips = load_trips(
        [
            {"code": " iki490 ", "created_at": "2026-01-01T10:00:00Z"},
            {"code": "IKI490", "created_at": "2026-01-01T11:00:00Z"},
            {"code": "abx123", "created_at": "garbage"},
            {"code": ""},
            42,
        ]
    )
    assert [t.code for t in trips] == ["IKI490", "ABX123"]
    assert trips[0].created_at == datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert trips[1].created_at is None


def test_normalize_trip_code() -> None:
    assert normalize_trip_code("  ab12 ") == "AB12"
    with pytest.raises(ValueError):
        normalize_trip_code("   ")
    with pytest.raises(ValueError):
        normalize_trip_code(123)


def test_latest_per_rider_keeps_newest_in_first_position() -> None:
    old = load_ping(_raw(rider_id="R1", timestamp="2026-01-01T11:00:00Z"))
    other = load_ping(_raw(rider_id="R2"))
    new = load_ping(_raw(rider_id="R1", lat=6.6))
    older_again = load_ping(_raw(rider_id="R1", timestamp="2026-01-01T10:00:00Z"))

    result = latest_per_rider([old, other, new, older_again])
    assert result == [new, other]


def test_latest_per_rider_separates_trips() -> None:
    a = load_ping(_raw(trip_code="T1"))
    b = load_ping(_raw(trip_code="T2"))
    assert latest_per_rider([a, b]) == [a, b]


def test_record_round_trip_keeps_instant() -> None:
    ping = load_ping(_raw())
    again = load_ping(ping_to_record(ping))
    assert again == ping


def test_parse_timestamp_variants() -> None:
    assert parse_timestamp("2026-01-01T12:00:00+01:00") == NOW - timedelta(hours=1)
    assert parse_timestamp(datetime(2026, 1, 1, 12, 0)) == NOW
    assert parse_timestamp(float("nan")) is None
    assert parse_timestamp(True) is None
    assert parse_timestamp("") is None

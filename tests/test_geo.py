import math

import numpy as np
import pytest

from shuttle_tracker.domain.geo import haversine_m, haversine_matrix_m, is_valid_coordinate


def test_haversine_zero_for_identical_points() -> None:
    assert haversine_m(6.5244, 3.3792, 6.5244, 3.3792) == 0.0


def test_haversine_is_symmetric() -> None:
    d1 = haversine_m(6.5244, 3.3792, 6.6000, 3.3500)
    d2 = haversine_m(6.6000, 3.3500, 6.5244, 3.3792)
    assert d1 == pytest.approx(d2, rel=0, abs=1e-9)


def test_haversine_one_degree_on_equator() -> None:
    expected = 6371000.0 * math.pi / 180.0
    assert haversine_m(0.0, 0.0, 0.0, 1.0) == pytest.approx(expected, rel=1e-12)


def test_haversine_antipodal_points() -> None:
    assert haversine_m(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * 6371000.0, rel=1e-9)


def test_matrix_matches_scalar_and_is_symmetric() -> None:
    lats = np.array([6.5244, 6.5245, 6.6000])
    lngs = np.array([3.3792, 3.3793, 3.3500])
    d = haversine_matrix_m(lats, lngs)

    assert d.shape == (3, 3)
    assert np.all(np.diag(d) == 0.0)
    assert np.array_equal(d, d.T)
    for i in range(3):
        for j in range(3):
            assert d[i, j] == pytest.approx(haversine_m(lats[i], lngs[i], lats[j], lngs[j]), abs=1e-6)


@pytest.mark.parametrize(
    "lat, lng, ok",
    [
        (0.0, 0.0, True),
        (90.0, -180.0, True),
        (91.0, 0.0, False),
        (0.0, 180.5, False),
        (float("nan"), 0.0, False),
        (0.0, float("inf"), False),
        (True, 0.0, False),
        ("6.5", 3.3, False),
    ],
)
def test_is_valid_coordinate(lat, lng, ok) -> None:
    assert is_valid_coordinate(lat, lng) is ok

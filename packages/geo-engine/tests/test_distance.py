import math

import pytest

from geo_engine.distance import distance_km, haversine_distance_km
from geo_engine.models import GeoPoint


def test_haversine_distance_is_zero_for_same_point() -> None:
    point = GeoPoint(lat=14.5995, lng=120.9842)
    distance = haversine_distance_km(point, point)
    assert distance == 0.0


def test_haversine_distance_is_symmetric() -> None:
    manila = GeoPoint(lat=14.5995, lng=120.9842)
    cebu = GeoPoint(lat=10.3157, lng=123.8854)

    forward = haversine_distance_km(manila, cebu)
    backward = haversine_distance_km(cebu, manila)

    assert forward == pytest.approx(backward, rel=1e-12)
    assert 550 < forward < 600


def test_distance_km_matches_one_hundredth_degree_of_latitude() -> None:
    assert distance_km(10.0, 123.0, 10.01, 123.0) == pytest.approx(1.112, abs=0.001)
    assert distance_km(10.0, 123.0, 10.001, 123.0) == pytest.approx(0.111, abs=0.001)


def test_distance_km_propagates_nan() -> None:
    assert math.isnan(distance_km(float("nan"), 123.0, 10.0, 123.0))

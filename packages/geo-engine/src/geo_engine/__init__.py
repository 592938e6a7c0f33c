"""Geo engine core package."""

from geo_engine.distance import EARTH_RADIUS_KM, distance_km, haversine_distance_km
from geo_engine.models import GeoPoint
from geo_engine.nearest import (
    DEFAULT_MATCH_RADIUS_KM,
    NearestMatch,
    find_nearest,
    parse_coordinate,
    parse_point,
)

__all__ = [
    "DEFAULT_MATCH_RADIUS_KM",
    "EARTH_RADIUS_KM",
    "GeoPoint",
    "NearestMatch",
    "distance_km",
    "find_nearest",
    "haversine_distance_km",
    "parse_coordinate",
    "parse_point",
]

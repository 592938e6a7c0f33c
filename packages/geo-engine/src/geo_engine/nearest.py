"""Nearest-candidate lookup within a radius.

Candidates carry their coordinates in whatever shape the upstream feed uses
(relief actions, for example, send them as strings). A ``locate`` callable
pulls the raw latitude/longitude out of each candidate and they are parsed
here, so one bad record never aborts the scan.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from geo_engine.distance import haversine_distance_km
from geo_engine.models import GeoPoint

T = TypeVar("T")

DEFAULT_MATCH_RADIUS_KM = 1.0


@dataclass(frozen=True)
class NearestMatch(Generic[T]):
    candidate: T
    distance_km: float


def parse_coordinate(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def parse_point(lat: object, lng: object) -> GeoPoint | None:
    parsed_lat = parse_coordinate(lat)
    parsed_lng = parse_coordinate(lng)
    if parsed_lat is None or parsed_lng is None:
        return None
    point = GeoPoint(lat=parsed_lat, lng=parsed_lng)
    if not point.is_valid():
        return None
    return point


def find_nearest(
    origin: GeoPoint,
    candidates: Iterable[T],
    locate: Callable[[T], tuple[object, object]],
    max_distance_km: float = DEFAULT_MATCH_RADIUS_KM,
) -> NearestMatch[T] | None:
    """Return the closest candidate no farther than ``max_distance_km``.

    Candidates with unparsable or out-of-range coordinates are skipped.
    Ties keep the first candidate seen, so results follow input order.
    """
    if max_distance_km < 0:
        raise ValueError("max_distance_km must be >= 0")

    best: NearestMatch[T] | None = None
    for candidate in candidates:
        point = parse_point(*locate(candidate))
        if point is None:
            continue
        distance = haversine_distance_km(origin, point)
        if distance > max_distance_km:
            continue
        if best is None or distance < best.distance_km:
            best = NearestMatch(candidate=candidate, distance_km=distance)
    return best

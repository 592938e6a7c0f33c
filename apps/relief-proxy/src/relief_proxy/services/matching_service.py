from __future__ import annotations

from collections.abc import Iterable, Sequence

from geo_engine.nearest import DEFAULT_MATCH_RADIUS_KM, find_nearest, parse_point

from relief_proxy.schemas.emergency import Emergency
from relief_proxy.schemas.relief_action import ReliefAction


def match_relief_actions(
    emergencies: Iterable[Emergency],
    relief_actions: Sequence[ReliefAction],
    max_distance_km: float = DEFAULT_MATCH_RADIUS_KM,
) -> list[Emergency]:
    """Annotate each emergency with its nearest relief action inside the radius.

    Emergencies are copied, never mutated, so cached snapshots stay untouched.
    """
    matched: list[Emergency] = []
    for emergency in emergencies:
        origin = parse_point(emergency.latitude, emergency.longitude)
        nearest = None
        if origin is not None:
            nearest = find_nearest(origin, relief_actions, ReliefAction.raw_location, max_distance_km)
        if nearest is None:
            matched.append(emergency.model_copy(update={"has_relief_action": False}))
            continue
        matched.append(
            emergency.model_copy(
                update={
                    "has_relief_action": True,
                    "relief_action_distance": nearest.distance_km,
                    "relief_action_details": nearest.candidate,
                }
            )
        )
    return matched


def count_matched(emergencies: Iterable[Emergency]) -> int:
    return sum(1 for emergency in emergencies if emergency.has_relief_action)

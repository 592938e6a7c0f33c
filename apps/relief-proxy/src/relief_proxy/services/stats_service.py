from __future__ import annotations

import math
import statistics
from collections import Counter
from collections.abc import Sequence

from relief_proxy.schemas.emergency import Emergency, EmergencyStatus, UrgencyLevel
from relief_proxy.schemas.stats import DashboardStats, StatItem

OUTLIER_PEOPLE_THRESHOLD = 500
TOP_NEEDS_LIMIT = 10


def _capitalize(label: str) -> str:
    return label[:1].upper() + label[1:]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _distribution(counter: Counter[str], capitalize: bool = False, limit: int | None = None) -> list[StatItem]:
    return [
        StatItem(label=_capitalize(label) if capitalize else label, value=value)
        for label, value in counter.most_common(limit)
    ]


def _urgency_distribution(counter: Counter[str]) -> list[StatItem]:
    # Equal counts list the more severe level first.
    ranked = sorted(counter.items(), key=lambda item: (-item[1], -UrgencyLevel(item[0]).severity))
    return [StatItem(label=label, value=value) for label, value in ranked]


def build_dashboard_stats(emergencies: Sequence[Emergency]) -> DashboardStats:
    people = [emergency.number_of_people for emergency in emergencies]
    total_people = sum(people)

    # Mean ignores outlier reports; median keeps every report.
    typical = [count for count in people if count <= OUTLIER_PEOPLE_THRESHOLD]
    if typical:
        avg_people = _round_half_up(sum(typical) / len(typical))
    elif people:
        avg_people = _round_half_up(total_people / len(people))
    else:
        avg_people = 0

    needs = Counter(need for emergency in emergencies for need in emergency.needs or ())
    urgency = Counter(emergency.urgency_level.value for emergency in emergencies)
    status = Counter(emergency.status.value for emergency in emergencies)

    return DashboardStats(
        total_emergencies=len(emergencies),
        total_people=total_people,
        avg_people=avg_people,
        median_people=float(statistics.median(people)) if people else 0.0,
        pending_count=status.get(EmergencyStatus.PENDING.value, 0),
        needs_stats=_distribution(needs, capitalize=True, limit=TOP_NEEDS_LIMIT),
        urgency_stats=_urgency_distribution(urgency),
        status_stats=_distribution(status, capitalize=True),
    )

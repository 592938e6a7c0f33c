from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float

    def is_valid(self) -> bool:
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            return False
        return -90 <= self.lat <= 90 and -180 <= self.lng <= 180

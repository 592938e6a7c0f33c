"""Social share card for a single emergency report."""

from __future__ import annotations

import hashlib

from relief_proxy.schemas.emergency import Emergency
from relief_proxy.schemas.feed import record_payload
from relief_proxy.schemas.share import ShareCard

SHARE_IMAGES = ("share_a.jpg", "share_b.jpg", "share_c.jpg", "share_d.jpg", "share_e.jpg")


def format_distance(distance_km: float | None) -> str:
    if not distance_km:
        return ""
    if distance_km < 1:
        return f"{distance_km * 1000:.0f}m away"
    return f"{distance_km:.1f}km away"


def pick_share_image(emergency_id: str) -> str:
    # Stable per report so crawlers and CDNs see the same card every time.
    digest = hashlib.sha256(emergency_id.encode("utf-8")).digest()
    return SHARE_IMAGES[digest[0] % len(SHARE_IMAGES)]


def build_share_card(emergency: Emergency, base_url: str) -> ShareCard:
    base_url = base_url.rstrip("/")
    distance_text = format_distance(emergency.relief_action_distance)
    place = emergency.placename or "an unknown location"
    if emergency.has_relief_action:
        title = f"Emergency in {place} - Relief Available {distance_text}!"
        description = (
            f"{emergency.number_of_people} people affected. Relief is available {distance_text}. "
            "Help coordinate relief efforts."
        )
    else:
        title = f"URGENT: Emergency in {place} needs immediate relief!"
        description = f"{emergency.number_of_people} people affected. No relief available yet - please help!"

    return ShareCard(
        title=title,
        description=description,
        url=f"{base_url}/share/emergency/{emergency.id}",
        image=f"{base_url}/{pick_share_image(emergency.id)}",
        emergency=record_payload(emergency),
    )

from __future__ import annotations

import dataclasses
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from relief_proxy.cache import CacheResult, SnapshotCache
from relief_proxy.config import ProxySettings
from relief_proxy.dependencies import get_emergency_cache, get_relief_cache, get_settings
from relief_proxy.errors import ApiError, NoDataAvailableError
from relief_proxy.response import cache_headers, feed_payload, success_response
from relief_proxy.schemas.emergency import Emergency
from relief_proxy.schemas.feed import record_payload
from relief_proxy.services.matching_service import count_matched, match_relief_actions
from relief_proxy.services.share_service import build_share_card
from relief_proxy.services.stats_service import build_dashboard_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/emergencies", tags=["emergencies"])


def _provenance(result: CacheResult) -> dict[str, object]:
    payload = feed_payload(result)
    return {key: payload[key] for key in ("cached", "lastUpdated", "nextUpdate", "cacheSource") if key in payload}


def _find_emergency(result: CacheResult, emergency_id: str) -> Emergency:
    for emergency in result.collection.data:
        if emergency.id == emergency_id:
            return emergency
    raise ApiError("NOT_FOUND", "Emergency not found", 404)


@router.get("")
async def list_emergencies(
    cache: SnapshotCache = Depends(get_emergency_cache),
    settings: ProxySettings = Depends(get_settings),
) -> JSONResponse:
    result = await cache.get()
    return JSONResponse(content=feed_payload(result), headers=cache_headers(result, settings.STALE_MAX_AGE_SECONDS))


@router.get("/matched")
async def list_matched_emergencies(
    radius_km: float | None = Query(default=None, ge=0),
    cache: SnapshotCache = Depends(get_emergency_cache),
    relief_cache: SnapshotCache = Depends(get_relief_cache),
    settings: ProxySettings = Depends(get_settings),
) -> JSONResponse:
    radius = settings.MATCH_RADIUS_KM if radius_km is None else radius_km
    result = await cache.get()
    relief = await relief_cache.get()

    matched = match_relief_actions(result.collection.data, relief.collection.data, radius)
    matched_result = dataclasses.replace(result, collection=result.collection.replace_records(matched))
    payload = feed_payload(matched_result)
    payload["matchedCount"] = count_matched(matched)
    payload["radiusKm"] = radius
    return JSONResponse(content=payload, headers=cache_headers(result, settings.STALE_MAX_AGE_SECONDS))


@router.get("/stats")
async def emergency_stats(
    cache: SnapshotCache = Depends(get_emergency_cache),
    settings: ProxySettings = Depends(get_settings),
) -> JSONResponse:
    result = await cache.get()
    stats = build_dashboard_stats(result.collection.data)
    return JSONResponse(
        content=success_response(stats.model_dump(by_alias=True), meta=_provenance(result)),
        headers=cache_headers(result, settings.STALE_MAX_AGE_SECONDS),
    )


@router.get("/{emergency_id}")
async def get_emergency(
    emergency_id: str,
    cache: SnapshotCache = Depends(get_emergency_cache),
) -> dict:
    result = await cache.get()
    emergency = _find_emergency(result, emergency_id)
    return success_response(record_payload(emergency), meta=_provenance(result))


@router.get("/{emergency_id}/share")
async def share_emergency(
    emergency_id: str,
    cache: SnapshotCache = Depends(get_emergency_cache),
    relief_cache: SnapshotCache = Depends(get_relief_cache),
    settings: ProxySettings = Depends(get_settings),
) -> dict:
    result = await cache.get()
    emergency = _find_emergency(result, emergency_id)
    try:
        relief = await relief_cache.get()
    except NoDataAvailableError as exc:
        logger.warning("share_relief_unavailable", extra={"emergency_id": emergency_id, "error": str(exc)})
        relief_actions: tuple = ()
    else:
        relief_actions = relief.collection.data

    matched = match_relief_actions([emergency], relief_actions, settings.MATCH_RADIUS_KM)[0]
    card = build_share_card(matched, settings.PUBLIC_BASE_URL)
    return success_response(card.model_dump(), meta={})

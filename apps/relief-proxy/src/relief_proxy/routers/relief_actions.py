from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from relief_proxy.cache import SnapshotCache
from relief_proxy.config import ProxySettings
from relief_proxy.dependencies import get_relief_cache, get_settings
from relief_proxy.response import cache_headers, feed_payload

router = APIRouter(prefix="/relief-actions", tags=["relief-actions"])


@router.get("")
async def list_relief_actions(
    cache: SnapshotCache = Depends(get_relief_cache),
    settings: ProxySettings = Depends(get_settings),
) -> JSONResponse:
    result = await cache.get()
    return JSONResponse(content=feed_payload(result), headers=cache_headers(result, settings.STALE_MAX_AGE_SECONDS))

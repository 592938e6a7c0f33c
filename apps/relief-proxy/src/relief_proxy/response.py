from __future__ import annotations

from typing import Any

from devkit.timezone import to_utc_iso

from relief_proxy.cache import CacheResult
from relief_proxy.errors import NoDataAvailableError
from relief_proxy.schemas.feed import CacheSource

CACHE_STATUS = {
    CacheSource.MEMORY: "HIT",
    CacheSource.UPSTREAM: "MISS",
    CacheSource.DURABLE_FALLBACK: "FALLBACK",
    CacheSource.STALE_MEMORY: "STALE",
}


def success_response(data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"success": True, "data": data, "meta": meta or {}}


def error_response(code: str, message: str) -> dict[str, Any]:
    return {"success": False, "error": {"code": code, "message": message}}


def feed_payload(result: CacheResult) -> dict[str, Any]:
    """Decorate a resolved collection with where it came from and how old it is."""
    payload = result.collection.to_payload()
    payload["cached"] = result.source is not CacheSource.UPSTREAM
    if result.stale:
        payload["stale"] = True
    payload["lastUpdated"] = to_utc_iso(result.last_fetch_time)
    payload["nextUpdate"] = to_utc_iso(result.last_fetch_time + result.fresh_window_seconds)
    payload["cacheSource"] = result.source.value
    if result.error:
        payload["error"] = result.error
    return payload


def cache_headers(result: CacheResult, stale_max_age_seconds: int = 60) -> dict[str, str]:
    max_age = stale_max_age_seconds if result.stale else int(result.fresh_window_seconds)
    return {
        "Cache-Control": f"public, max-age={max_age}, s-maxage={max_age}",
        "CDN-Cache-Control": f"max-age={max_age}",
        "X-Cache-Status": CACHE_STATUS[result.source],
    }


def no_data_payload(error: NoDataAvailableError) -> dict[str, Any]:
    return {
        "success": False,
        "count": 0,
        "error": str(error),
        "details": {
            "upstreamError": error.upstream_error,
            "durableError": error.durable_error,
        },
    }

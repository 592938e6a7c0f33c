from relief_proxy.cache import CacheResult
from relief_proxy.errors import NoDataAvailableError
from relief_proxy.response import cache_headers, error_response, feed_payload, no_data_payload, success_response
from relief_proxy.schemas.emergency import Emergency
from relief_proxy.schemas.feed import CacheSource, FeedCollection

FETCHED_AT = 1_700_000_000.0


def build_result(source: CacheSource, stale: bool = False, error: str | None = None) -> CacheResult:
    record = Emergency.model_validate(
        {
            "id": "e-1",
            "latitude": 10.0,
            "longitude": 123.0,
            "numberOfPeople": 5,
            "urgencyLevel": "HIGH",
            "status": "in-progress",
        }
    )
    return CacheResult(
        collection=FeedCollection(data=(record,)),
        source=source,
        stale=stale,
        last_fetch_time=FETCHED_AT,
        last_successful_fetch_time=FETCHED_AT,
        fresh_window_seconds=300.0,
        error=error,
    )


def test_success_response_shape() -> None:
    payload = success_response({"id": 1}, {"page": 1})
    assert payload["success"] is True
    assert payload["data"] == {"id": 1}
    assert payload["meta"] == {"page": 1}


def test_error_response_shape() -> None:
    payload = error_response("NOT_FOUND", "missing")
    assert payload["success"] is False
    assert payload["error"]["code"] == "NOT_FOUND"
    assert payload["error"]["message"] == "missing"


def test_feed_payload_for_upstream_result() -> None:
    payload = feed_payload(build_result(CacheSource.UPSTREAM))

    assert payload["success"] is True
    assert payload["count"] == 1
    assert payload["data"][0]["numberOfPeople"] == 5
    assert payload["cached"] is False
    assert "stale" not in payload
    assert "error" not in payload
    assert payload["cacheSource"] == "upstream"
    assert payload["lastUpdated"] == "2023-11-14T22:13:20.000Z"
    assert payload["nextUpdate"] == "2023-11-14T22:18:20.000Z"


def test_feed_payload_marks_memory_and_fallback_as_cached() -> None:
    assert feed_payload(build_result(CacheSource.MEMORY))["cached"] is True
    fallback = feed_payload(build_result(CacheSource.DURABLE_FALLBACK))
    assert fallback["cached"] is True
    assert fallback["cacheSource"] == "durable-fallback"
    assert "stale" not in fallback


def test_feed_payload_for_stale_result() -> None:
    payload = feed_payload(build_result(CacheSource.STALE_MEMORY, stale=True, error="Using stale cached data"))

    assert payload["stale"] is True
    assert payload["cached"] is True
    assert payload["error"] == "Using stale cached data"
    assert payload["cacheSource"] == "stale-memory"


def test_cache_headers_follow_fresh_window() -> None:
    headers = cache_headers(build_result(CacheSource.MEMORY))

    assert headers["Cache-Control"] == "public, max-age=300, s-maxage=300"
    assert headers["CDN-Cache-Control"] == "max-age=300"
    assert headers["X-Cache-Status"] == "HIT"
    assert cache_headers(build_result(CacheSource.UPSTREAM))["X-Cache-Status"] == "MISS"
    assert cache_headers(build_result(CacheSource.DURABLE_FALLBACK))["X-Cache-Status"] == "FALLBACK"


def test_cache_headers_shorten_max_age_for_stale_data() -> None:
    headers = cache_headers(build_result(CacheSource.STALE_MEMORY, stale=True), stale_max_age_seconds=60)

    assert headers["Cache-Control"] == "public, max-age=60, s-maxage=60"
    assert headers["X-Cache-Status"] == "STALE"


def test_no_data_payload_carries_both_causes() -> None:
    error = NoDataAvailableError("emergency", "emergency upstream responded with status: 500", "missing blob")

    payload = no_data_payload(error)

    assert payload == {
        "success": False,
        "count": 0,
        "error": "Failed to load emergency data from upstream and durable storage",
        "details": {
            "upstreamError": "emergency upstream responded with status: 500",
            "durableError": "missing blob",
        },
    }

"""Common runtime devkit for service infrastructure concerns."""

from devkit.config import ServiceSettings, load_settings
from devkit.observability import configure_logging, configure_otel, configure_probe_access_log_filter
from devkit.redis import AsyncRedisManager, create_redis_client
from devkit.timezone import to_utc_iso, utc_now

__all__ = [
    "AsyncRedisManager",
    "ServiceSettings",
    "configure_logging",
    "configure_otel",
    "configure_probe_access_log_filter",
    "create_redis_client",
    "load_settings",
    "to_utc_iso",
    "utc_now",
]

from __future__ import annotations

from devkit.redis import AsyncRedisManager, create_redis_client

from relief_proxy.cache import SnapshotCache
from relief_proxy.clients.feed_client import FeedClient
from relief_proxy.config import ProxySettings, load_proxy_settings
from relief_proxy.errors import ConfigurationError
from relief_proxy.feeds import UpstreamFeed
from relief_proxy.observability import FeedMetricsRecorder, PrometheusFeedMetrics
from relief_proxy.quality import EmergencyQualityGate, ReliefActionQualityGate
from relief_proxy.scheduler import AsyncioTaskScheduler, TaskScheduler
from relief_proxy.storage.blob_store import BlobStore, FileBlobStore, InMemoryBlobStore, RedisBlobStore, S3BlobStore
from relief_proxy.storage.snapshot_store import DurableSnapshotStore

EMERGENCY_FEED = "emergency"
RELIEF_FEED = "relief action"


def build_blob_store(settings: ProxySettings, redis_manager: AsyncRedisManager | None) -> BlobStore:
    backend = settings.SNAPSHOT_BACKEND
    if backend == "file":
        return FileBlobStore(settings.SNAPSHOT_DIR)
    if backend == "redis":
        if redis_manager is None:
            raise ConfigurationError("REDIS_URL environment variable is not set")
        return RedisBlobStore(redis_manager, namespace=f"{settings.SERVICE_NAME}:snapshot:")
    if backend == "s3":
        if not settings.SNAPSHOT_S3_BUCKET:
            raise ConfigurationError("SNAPSHOT_S3_BUCKET environment variable is not set")
        return S3BlobStore(settings.SNAPSHOT_S3_BUCKET, prefix=settings.SNAPSHOT_S3_PREFIX)
    return InMemoryBlobStore()


def build_emergency_cache(
    settings: ProxySettings,
    scheduler: TaskScheduler,
    blob_store: BlobStore,
    metrics: FeedMetricsRecorder | None = None,
) -> SnapshotCache:
    gate = EmergencyQualityGate(max_people=settings.MAX_PEOPLE_PER_REPORT)
    client = FeedClient(
        EMERGENCY_FEED,
        settings.VICTIM_REPORTS_API,
        url_setting="VICTIM_REPORTS_API",
        timeout_seconds=settings.EMERGENCY_FETCH_TIMEOUT_SECONDS,
    )
    return SnapshotCache(
        EMERGENCY_FEED,
        UpstreamFeed(client, gate),
        scheduler,
        durable=DurableSnapshotStore(blob_store, gate, key=settings.SNAPSHOT_KEY),
        fresh_window_seconds=settings.EMERGENCY_FRESH_WINDOW_SECONDS,
        retry_interval_seconds=settings.UPSTREAM_RETRY_INTERVAL_SECONDS,
        retry_kickoff_seconds=settings.RETRY_KICKOFF_SECONDS,
        metrics=metrics,
    )


def build_relief_cache(
    settings: ProxySettings,
    scheduler: TaskScheduler,
    metrics: FeedMetricsRecorder | None = None,
) -> SnapshotCache:
    client = FeedClient(
        RELIEF_FEED,
        settings.RELIEF_ACTIONS_API,
        url_setting="RELIEF_ACTIONS_API",
        timeout_seconds=settings.RELIEF_FETCH_TIMEOUT_SECONDS,
    )
    # Relief actions have no durable copy and no background retry.
    return SnapshotCache(
        RELIEF_FEED,
        UpstreamFeed(client, ReliefActionQualityGate()),
        scheduler,
        fresh_window_seconds=settings.RELIEF_FRESH_WINDOW_SECONDS,
        retry_interval_seconds=None,
        metrics=metrics,
    )


_settings = load_proxy_settings()
_scheduler = AsyncioTaskScheduler()
_feed_metrics = PrometheusFeedMetrics()
_redis_manager = create_redis_client(_settings.REDIS_URL)
_blob_store = build_blob_store(_settings, _redis_manager)
_emergency_cache = build_emergency_cache(_settings, _scheduler, _blob_store, _feed_metrics)
_relief_cache = build_relief_cache(_settings, _scheduler, _feed_metrics)


def get_settings() -> ProxySettings:
    return _settings


def get_scheduler() -> AsyncioTaskScheduler:
    return _scheduler


def get_feed_metrics() -> PrometheusFeedMetrics:
    return _feed_metrics


def get_redis_manager() -> AsyncRedisManager | None:
    return _redis_manager


def get_emergency_cache() -> SnapshotCache:
    return _emergency_cache


def get_relief_cache() -> SnapshotCache:
    return _relief_cache

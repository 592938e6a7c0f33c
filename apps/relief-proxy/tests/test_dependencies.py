import pytest
from pydantic import ValidationError

from devkit.redis import AsyncRedisManager

from relief_proxy.config import ProxySettings
from relief_proxy.dependencies import build_blob_store, build_emergency_cache, build_relief_cache
from relief_proxy.errors import ConfigurationError
from relief_proxy.scheduler import ManualTaskScheduler
from relief_proxy.storage.blob_store import FileBlobStore, InMemoryBlobStore, RedisBlobStore, S3BlobStore


def test_default_settings_match_feed_policy(monkeypatch) -> None:
    monkeypatch.delenv("VICTIM_REPORTS_API", raising=False)
    settings = ProxySettings()

    assert settings.VICTIM_REPORTS_API is None
    assert settings.EMERGENCY_FRESH_WINDOW_SECONDS == 300.0
    assert settings.RELIEF_FRESH_WINDOW_SECONDS == 600.0
    assert settings.UPSTREAM_RETRY_INTERVAL_SECONDS == 300.0
    assert settings.MAX_PEOPLE_PER_REPORT == 3000
    assert settings.MATCH_RADIUS_KM == 1.0


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("VICTIM_REPORTS_API", "https://reports.example.com/reports")
    monkeypatch.setenv("EMERGENCY_FETCH_TIMEOUT_SECONDS", "300")
    monkeypatch.setenv("SNAPSHOT_BACKEND", "file")

    settings = ProxySettings()

    assert settings.VICTIM_REPORTS_API == "https://reports.example.com/reports"
    assert settings.EMERGENCY_FETCH_TIMEOUT_SECONDS == 300.0
    assert settings.SNAPSHOT_BACKEND == "file"


def test_settings_reject_timeouts_above_limit() -> None:
    with pytest.raises(ValidationError):
        ProxySettings(EMERGENCY_FETCH_TIMEOUT_SECONDS=301)


def test_build_blob_store_per_backend(tmp_path) -> None:
    assert isinstance(build_blob_store(ProxySettings(SNAPSHOT_BACKEND="memory"), None), InMemoryBlobStore)
    assert isinstance(
        build_blob_store(ProxySettings(SNAPSHOT_BACKEND="file", SNAPSHOT_DIR=str(tmp_path)), None),
        FileBlobStore,
    )
    manager = AsyncRedisManager("redis://localhost:6379/0", client_factory=lambda _: object())
    assert isinstance(build_blob_store(ProxySettings(SNAPSHOT_BACKEND="redis"), manager), RedisBlobStore)
    assert isinstance(
        build_blob_store(ProxySettings(SNAPSHOT_BACKEND="s3", SNAPSHOT_S3_BUCKET="relief-snapshots"), None),
        S3BlobStore,
    )


def test_build_blob_store_requires_backend_settings() -> None:
    with pytest.raises(ConfigurationError):
        build_blob_store(ProxySettings(SNAPSHOT_BACKEND="redis"), None)
    with pytest.raises(ConfigurationError):
        build_blob_store(ProxySettings(SNAPSHOT_BACKEND="s3", SNAPSHOT_S3_BUCKET=None), None)


def test_feed_caches_follow_settings() -> None:
    settings = ProxySettings(EMERGENCY_FRESH_WINDOW_SECONDS=120, RELIEF_FRESH_WINDOW_SECONDS=900)
    scheduler = ManualTaskScheduler()

    emergency_cache = build_emergency_cache(settings, scheduler, InMemoryBlobStore())
    relief_cache = build_relief_cache(settings, scheduler)

    assert emergency_cache.name == "emergency"
    assert emergency_cache.fresh_window_seconds == 120
    assert relief_cache.fresh_window_seconds == 900
    assert relief_cache.schedule_retry(1.0) is False
    assert scheduler.pending == []

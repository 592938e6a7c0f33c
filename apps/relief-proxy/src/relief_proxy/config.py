from __future__ import annotations

from typing import Literal

from pydantic import Field

from devkit.config import ServiceSettings

MAX_UPSTREAM_TIMEOUT_SECONDS = 300.0


class ProxySettings(ServiceSettings):
    SERVICE_NAME: str = "relief-proxy"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    VICTIM_REPORTS_API: str | None = None
    RELIEF_ACTIONS_API: str | None = None
    EMERGENCY_FETCH_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0, le=MAX_UPSTREAM_TIMEOUT_SECONDS)
    RELIEF_FETCH_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0, le=MAX_UPSTREAM_TIMEOUT_SECONDS)

    EMERGENCY_FRESH_WINDOW_SECONDS: float = Field(default=300.0, gt=0)
    RELIEF_FRESH_WINDOW_SECONDS: float = Field(default=600.0, gt=0)
    UPSTREAM_RETRY_INTERVAL_SECONDS: float = Field(default=300.0, gt=0)
    RETRY_KICKOFF_SECONDS: float = Field(default=1.0, ge=0)
    STALE_MAX_AGE_SECONDS: int = Field(default=60, ge=0)

    MAX_PEOPLE_PER_REPORT: int = Field(default=3000, ge=0)
    MATCH_RADIUS_KM: float = Field(default=1.0, ge=0)

    SNAPSHOT_BACKEND: Literal["memory", "file", "redis", "s3"] = "memory"
    SNAPSHOT_KEY: str = "emergencies.json"
    SNAPSHOT_DIR: str = ".snapshots"
    SNAPSHOT_S3_BUCKET: str | None = None
    SNAPSHOT_S3_PREFIX: str = ""

    PUBLIC_BASE_URL: str = "http://localhost:3000"


def load_proxy_settings() -> ProxySettings:
    return ProxySettings()

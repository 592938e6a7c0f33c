"""Read-through cache for a single feed.

The cache serves memory while it is fresh, otherwise goes to the upstream
feed, then to the durable snapshot, and finally serves the old memory snapshot
marked stale. A single-flight background retry keeps pulling from upstream
until it succeeds once data had to come from somewhere else.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

from relief_proxy.errors import DurableUnavailableError, NoDataAvailableError, UpstreamError
from relief_proxy.observability import FeedMetricsRecorder
from relief_proxy.scheduler import ScheduledTask, TaskScheduler
from relief_proxy.schemas.feed import CacheSource, FeedCollection

logger = logging.getLogger(__name__)

STALE_ERROR_MESSAGE = "Using stale cached data due to upstream and durable storage errors"


class SnapshotSource(Protocol):
    async def fetch(self) -> FeedCollection[Any]: ...


class DurableSnapshot(Protocol):
    async def read(self) -> FeedCollection[Any]: ...

    async def write(self, collection: FeedCollection[Any]) -> bool: ...


class CacheState(StrEnum):
    COLD = "cold"
    WARM = "warm"
    AGING = "aging"
    STALE = "stale"


@dataclass(frozen=True)
class CacheResult:
    collection: FeedCollection[Any]
    source: CacheSource
    stale: bool
    last_fetch_time: float
    last_successful_fetch_time: float | None
    fresh_window_seconds: float
    error: str | None = None


class _NullFeedMetrics:
    def record_lookup(self, feed: str, source: str) -> None:
        return None

    def record_fetch(self, feed: str, outcome: str) -> None:
        return None

    def record_durable_write_failure(self, feed: str) -> None:
        return None


class SnapshotCache:
    def __init__(
        self,
        name: str,
        source: SnapshotSource,
        scheduler: TaskScheduler,
        durable: DurableSnapshot | None = None,
        fresh_window_seconds: float = 300.0,
        retry_interval_seconds: float | None = 300.0,
        retry_kickoff_seconds: float = 1.0,
        clock: Callable[[], float] = time.time,
        metrics: FeedMetricsRecorder | None = None,
    ) -> None:
        self._name = name
        self._source = source
        self._scheduler = scheduler
        self._durable = durable
        self._fresh_window_seconds = fresh_window_seconds
        self._retry_interval_seconds = retry_interval_seconds
        self._retry_kickoff_seconds = retry_kickoff_seconds
        self._clock = clock
        self._metrics = metrics or _NullFeedMetrics()

        self._snapshot: FeedCollection[Any] | None = None
        self._last_fetch_time: float | None = None
        self._last_successful_fetch_time: float | None = None
        self._retry_in_flight = False
        self._retry_handle: ScheduledTask | None = None
        self._generation = 0
        self._issued_ticket = 0
        self._applied_ticket = 0
        self._degraded = False
        self._refresh_lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def fresh_window_seconds(self) -> float:
        return self._fresh_window_seconds

    @property
    def snapshot(self) -> FeedCollection[Any] | None:
        return self._snapshot

    @property
    def last_fetch_time(self) -> float | None:
        return self._last_fetch_time

    @property
    def last_successful_fetch_time(self) -> float | None:
        return self._last_successful_fetch_time

    @property
    def retry_in_flight(self) -> bool:
        return self._retry_in_flight

    @property
    def retry_pending(self) -> bool:
        return self._retry_handle is not None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def state(self) -> CacheState:
        if self._snapshot is None:
            return CacheState.COLD
        if self._degraded:
            return CacheState.STALE
        if self._retry_in_flight or self._retry_handle is not None or not self._is_fresh(self._clock()):
            return CacheState.AGING
        return CacheState.WARM

    def seed(
        self,
        collection: FeedCollection[Any],
        fetched_at: float,
        successful_at: float | None = None,
    ) -> None:
        """Install a snapshot obtained outside the normal fetch path."""
        self._snapshot = collection
        self._last_fetch_time = fetched_at
        self._last_successful_fetch_time = successful_at
        self._generation += 1
        self._degraded = False

    async def get(self) -> CacheResult:
        now = self._clock()
        if self._is_fresh(now):
            self._schedule_aging_retry(now)
            return self._serve(CacheSource.MEMORY)

        async with self._refresh_lock:
            now = self._clock()
            if self._is_fresh(now):
                return self._serve(CacheSource.MEMORY)
            return await self._refresh(now)

    async def retry_upstream(self) -> bool:
        if self._retry_in_flight:
            logger.info("feed_retry_skipped", extra={"feed": self._name, "reason": "in_flight"})
            return False

        self._retry_in_flight = True
        ticket = self._next_ticket()
        logger.info("feed_retry_started", extra={"feed": self._name})
        failure: UpstreamError | None = None
        try:
            collection = await self._source.fetch()
        except UpstreamError as exc:
            failure = exc
        finally:
            self._retry_in_flight = False

        if failure is not None:
            self._metrics.record_fetch(self._name, "retry_failure")
            logger.warning(
                "feed_retry_failed",
                extra={"feed": self._name, "error": str(failure), "retry_in_seconds": self._retry_interval_seconds},
            )
            if self._retry_interval_seconds is not None:
                self.schedule_retry(self._retry_interval_seconds)
            return False

        self._metrics.record_fetch(self._name, "retry_success")
        applied = self._apply_upstream(collection, self._clock(), ticket)
        if applied:
            self._write_through(collection)
            logger.info("feed_retry_succeeded", extra={"feed": self._name, "count": collection.count})
        return applied

    def schedule_retry(self, delay_seconds: float) -> bool:
        if self._retry_interval_seconds is None:
            return False
        if self._retry_in_flight or self._retry_handle is not None:
            return False
        self._retry_handle = self._scheduler.call_later(delay_seconds, self._run_scheduled_retry)
        logger.info("feed_retry_scheduled", extra={"feed": self._name, "delay_seconds": delay_seconds})
        return True

    def cancel_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    async def _run_scheduled_retry(self) -> None:
        self._retry_handle = None
        await self.retry_upstream()

    async def _refresh(self, now: float) -> CacheResult:
        ticket = self._next_ticket()
        try:
            collection = await self._source.fetch()
        except UpstreamError as exc:
            self._metrics.record_fetch(self._name, "failure")
            logger.warning("feed_upstream_failed", extra={"feed": self._name, "error": str(exc)})
            return await self._fallback(now, exc)

        self._metrics.record_fetch(self._name, "success")
        if not self._apply_upstream(collection, now, ticket):
            return self._serve(CacheSource.MEMORY)
        self._write_through(collection)
        return self._serve(CacheSource.UPSTREAM)

    async def _fallback(self, now: float, upstream_error: UpstreamError) -> CacheResult:
        if self._durable is None:
            durable_error: Exception = DurableUnavailableError("no durable snapshot store is configured")
        else:
            generation = self._generation
            try:
                collection = await self._durable.read()
            except DurableUnavailableError as exc:
                durable_error = exc
                logger.warning("feed_durable_failed", extra={"feed": self._name, "error": str(exc)})
            else:
                applied = self._apply_durable(collection, now, generation)
                if self._retry_interval_seconds is not None:
                    self.schedule_retry(self._retry_interval_seconds)
                return self._serve(CacheSource.DURABLE_FALLBACK if applied else CacheSource.MEMORY)

        if self._snapshot is not None:
            self._degraded = True
            logger.warning(
                "feed_serving_stale",
                extra={"feed": self._name, "count": self._snapshot.count, "last_fetch_time": self._last_fetch_time},
            )
            return self._serve(CacheSource.STALE_MEMORY, error=STALE_ERROR_MESSAGE)

        logger.error(
            "feed_no_data_available",
            extra={"feed": self._name, "upstream_error": str(upstream_error), "durable_error": str(durable_error)},
        )
        raise NoDataAvailableError(self._name, str(upstream_error), str(durable_error))

    def _apply_upstream(self, collection: FeedCollection[Any], now: float, ticket: int) -> bool:
        if ticket <= self._applied_ticket:
            logger.info(
                "feed_snapshot_discarded",
                extra={"feed": self._name, "ticket": ticket, "applied_ticket": self._applied_ticket},
            )
            return False
        self._applied_ticket = ticket
        self._install(collection, now)
        self._last_successful_fetch_time = now
        self.cancel_retry()
        return True

    def _apply_durable(self, collection: FeedCollection[Any], now: float, started_generation: int) -> bool:
        if started_generation != self._generation:
            logger.info("feed_durable_snapshot_discarded", extra={"feed": self._name})
            return False
        self._install(collection, now)
        return True

    def _install(self, collection: FeedCollection[Any], now: float) -> None:
        self._snapshot = collection
        self._last_fetch_time = now
        self._generation += 1
        self._degraded = False

    def _next_ticket(self) -> int:
        self._issued_ticket += 1
        return self._issued_ticket

    def _write_through(self, collection: FeedCollection[Any]) -> None:
        if self._durable is None:
            return
        durable = self._durable

        async def persist() -> None:
            if not await durable.write(collection):
                self._metrics.record_durable_write_failure(self._name)

        self._scheduler.spawn(persist)

    def _schedule_aging_retry(self, now: float) -> None:
        if self._retry_interval_seconds is None:
            return
        last_success = self._last_successful_fetch_time
        if last_success is not None and now - last_success <= self._retry_interval_seconds:
            return
        self.schedule_retry(self._retry_kickoff_seconds)

    def _is_fresh(self, now: float) -> bool:
        if self._snapshot is None or self._last_fetch_time is None:
            return False
        return now - self._last_fetch_time < self._fresh_window_seconds

    def _serve(self, source: CacheSource, error: str | None = None) -> CacheResult:
        assert self._snapshot is not None and self._last_fetch_time is not None
        self._metrics.record_lookup(self._name, source.value)
        return CacheResult(
            collection=self._snapshot,
            source=source,
            stale=source is CacheSource.STALE_MEMORY,
            last_fetch_time=self._last_fetch_time,
            last_successful_fetch_time=self._last_successful_fetch_time,
            fresh_window_seconds=self._fresh_window_seconds,
            error=error,
        )

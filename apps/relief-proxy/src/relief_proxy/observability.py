from __future__ import annotations

from collections import Counter as TallyCounter
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Protocol

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

_trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")


def set_trace_id(trace_id: str) -> None:
    _trace_id_ctx.set(trace_id)


def get_trace_id() -> str:
    return _trace_id_ctx.get()


@dataclass(frozen=True)
class ApiRequestMetric:
    method: str
    path: str
    status_code: int
    duration_ms: float
    trace_id: str


class ApiMetricCollector(Protocol):
    def observe(self, metric: ApiRequestMetric) -> None: ...


class InMemoryApiMetricsCollector(ApiMetricCollector):
    def __init__(self) -> None:
        self._metrics: list[ApiRequestMetric] = []

    def observe(self, metric: ApiRequestMetric) -> None:
        self._metrics.append(metric)

    def snapshot(self) -> list[dict]:
        return [asdict(item) for item in self._metrics]


class PrometheusApiMetricsCollector(ApiMetricCollector):
    def __init__(self) -> None:
        self._registry = CollectorRegistry()
        self._request_counter = Counter(
            "relief_proxy_http_requests_total",
            "Total proxy HTTP requests",
            labelnames=("method", "path", "status_code"),
            registry=self._registry,
        )
        self._latency_histogram = Histogram(
            "relief_proxy_http_request_duration_ms",
            "Proxy HTTP request latency in milliseconds",
            labelnames=("method", "path"),
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 5000, 30000),
            registry=self._registry,
        )

    def observe(self, metric: ApiRequestMetric) -> None:
        status = str(metric.status_code)
        self._request_counter.labels(metric.method, metric.path, status).inc()
        self._latency_histogram.labels(metric.method, metric.path).observe(metric.duration_ms)

    def render(self) -> str:
        return generate_latest(self._registry).decode("utf-8")


class CompositeApiMetricsCollector(ApiMetricCollector):
    def __init__(self, collectors: list[ApiMetricCollector]) -> None:
        self._collectors = collectors

    def observe(self, metric: ApiRequestMetric) -> None:
        for collector in self._collectors:
            collector.observe(metric)


class FeedMetricsRecorder(Protocol):
    def record_lookup(self, feed: str, source: str) -> None: ...

    def record_fetch(self, feed: str, outcome: str) -> None: ...

    def record_durable_write_failure(self, feed: str) -> None: ...


class InMemoryFeedMetrics(FeedMetricsRecorder):
    def __init__(self) -> None:
        self.lookups: TallyCounter[tuple[str, str]] = TallyCounter()
        self.fetches: TallyCounter[tuple[str, str]] = TallyCounter()
        self.durable_write_failures: TallyCounter[str] = TallyCounter()

    def record_lookup(self, feed: str, source: str) -> None:
        self.lookups[(feed, source)] += 1

    def record_fetch(self, feed: str, outcome: str) -> None:
        self.fetches[(feed, outcome)] += 1

    def record_durable_write_failure(self, feed: str) -> None:
        self.durable_write_failures[feed] += 1


class PrometheusFeedMetrics(FeedMetricsRecorder):
    def __init__(self) -> None:
        self._registry = CollectorRegistry()
        self._lookups = Counter(
            "relief_proxy_cache_lookups_total",
            "Feed responses by cache source",
            labelnames=("feed", "source"),
            registry=self._registry,
        )
        self._fetches = Counter(
            "relief_proxy_upstream_fetches_total",
            "Upstream fetch attempts by outcome",
            labelnames=("feed", "outcome"),
            registry=self._registry,
        )
        self._durable_write_failures = Counter(
            "relief_proxy_durable_write_failures_total",
            "Durable snapshot writes that failed",
            labelnames=("feed",),
            registry=self._registry,
        )

    def record_lookup(self, feed: str, source: str) -> None:
        self._lookups.labels(feed, source).inc()

    def record_fetch(self, feed: str, outcome: str) -> None:
        self._fetches.labels(feed, outcome).inc()

    def record_durable_write_failure(self, feed: str) -> None:
        self._durable_write_failures.labels(feed).inc()

    def render(self) -> str:
        return generate_latest(self._registry).decode("utf-8")

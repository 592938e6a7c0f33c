from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    status_code: int


class FeedError(Exception):
    """Base feed exception."""


class ConfigurationError(FeedError):
    """Raised when a feed is used without its required configuration."""


class UpstreamError(FeedError):
    """Raised when the live upstream feed could not provide a collection."""


class UpstreamStatusError(UpstreamError):
    def __init__(self, feed: str, status_code: int) -> None:
        super().__init__(f"{feed} upstream responded with status: {status_code}")
        self.feed = feed
        self.status_code = status_code


class UpstreamSchemaError(UpstreamError):
    """Raised when the upstream body is not a valid feed envelope."""


class UpstreamTimeoutError(UpstreamError):
    """Raised when the upstream call exceeded its deadline."""


class UpstreamConnectionError(UpstreamError):
    """Raised when the upstream could not be reached at all."""


class DurableUnavailableError(FeedError):
    """Raised when the durable snapshot is missing or unreadable."""


class NoDataAvailableError(FeedError):
    def __init__(self, feed: str, upstream_error: str, durable_error: str) -> None:
        super().__init__(f"Failed to load {feed} data from upstream and durable storage")
        self.feed = feed
        self.upstream_error = upstream_error
        self.durable_error = durable_error

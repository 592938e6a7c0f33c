from __future__ import annotations

import logging
from typing import Generic

from relief_proxy.clients.feed_client import FeedClient
from relief_proxy.quality import FeedQualityGate
from relief_proxy.schemas.feed import FeedCollection, RecordT

logger = logging.getLogger(__name__)


class UpstreamFeed(Generic[RecordT]):
    """Live source of truth for one feed: fetch, validate, filter."""

    def __init__(self, client: FeedClient, gate: FeedQualityGate[RecordT]) -> None:
        self._client = client
        self._gate = gate

    @property
    def name(self) -> str:
        return self._client.feed

    async def fetch(self) -> FeedCollection[RecordT]:
        raw_records = await self._client.fetch_records()
        collection = self._gate.apply(raw_records, origin="upstream")
        logger.info(
            "feed_upstream_fetched",
            extra={"feed": self.name, "received": len(raw_records), "count": collection.count},
        )
        return collection

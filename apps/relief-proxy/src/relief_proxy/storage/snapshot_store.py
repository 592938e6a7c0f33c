from __future__ import annotations

import json
import logging
from typing import Generic

from relief_proxy.clients.feed_client import parse_envelope
from relief_proxy.errors import DurableUnavailableError, UpstreamSchemaError
from relief_proxy.quality import FeedQualityGate
from relief_proxy.schemas.feed import FeedCollection, RecordT
from relief_proxy.storage.blob_store import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_KEY = "emergencies.json"


class DurableSnapshotStore(Generic[RecordT]):
    """Last known-good copy of a feed kept outside the process.

    Reads re-run the quality gate because older snapshots may have been
    written before the gate existed. Writes never raise.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        gate: FeedQualityGate[RecordT],
        key: str = DEFAULT_SNAPSHOT_KEY,
    ) -> None:
        self._blob_store = blob_store
        self._gate = gate
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    async def read(self) -> FeedCollection[RecordT]:
        try:
            body = await self._blob_store.get(self._key)
        except Exception as exc:
            raise DurableUnavailableError(f"durable snapshot {self._key} is unreadable: {exc}") from exc
        if body is None:
            raise DurableUnavailableError(f"durable snapshot {self._key} does not exist")

        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise DurableUnavailableError(f"durable snapshot {self._key} is not valid JSON") from exc
        try:
            raw_records = parse_envelope(payload, origin=f"durable snapshot {self._key}")
        except UpstreamSchemaError as exc:
            raise DurableUnavailableError(str(exc)) from exc

        collection = self._gate.apply(raw_records, origin="durable")
        logger.info(
            "durable_snapshot_loaded",
            extra={"key": self._key, "received": len(raw_records), "count": collection.count},
        )
        return collection

    async def write(self, collection: FeedCollection[RecordT]) -> bool:
        try:
            body = json.dumps(collection.to_payload(), ensure_ascii=True).encode("utf-8")
            await self._blob_store.put(self._key, body)
        except Exception:
            logger.exception("durable_snapshot_write_failed", extra={"key": self._key, "count": collection.count})
            return False
        logger.info("durable_snapshot_written", extra={"key": self._key, "count": collection.count})
        return True

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

RecordT = TypeVar("RecordT", bound=BaseModel)


class CacheSource(StrEnum):
    MEMORY = "memory"
    UPSTREAM = "upstream"
    DURABLE_FALLBACK = "durable-fallback"
    STALE_MEMORY = "stale-memory"


@dataclass(frozen=True)
class FeedCollection(Generic[RecordT]):
    """One complete, immutable copy of a feed.

    ``count`` is derived from ``data`` so the two can never disagree.
    """

    data: tuple[RecordT, ...] = ()
    success: bool = True

    @property
    def count(self) -> int:
        return len(self.data)

    def replace_records(self, records: list[RecordT] | tuple[RecordT, ...]) -> FeedCollection[RecordT]:
        return FeedCollection(data=tuple(records), success=self.success)

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "count": self.count,
            "data": [record_payload(record) for record in self.data],
        }


def record_payload(record: BaseModel) -> dict[str, Any]:
    return record.model_dump(mode="json", by_alias=True, exclude_unset=True)

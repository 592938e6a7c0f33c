from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic

from pydantic import ValidationError

from relief_proxy.schemas.emergency import Emergency
from relief_proxy.schemas.feed import FeedCollection, RecordT
from relief_proxy.schemas.relief_action import ReliefAction

logger = logging.getLogger(__name__)

DEFAULT_MAX_PEOPLE_PER_REPORT = 3000


@dataclass(frozen=True)
class QualityRejectedSample:
    record_id: str
    reason: str


@dataclass(frozen=True)
class QualityResult(Generic[RecordT]):
    accepted: list[RecordT]
    rejected_count: int
    rejected_samples: list[QualityRejectedSample]


class FeedQualityGate(Generic[RecordT]):
    """Validates raw feed records and drops the ones that must never be served."""

    id_field = "id"

    def __init__(self, feed: str, record_model: type[RecordT], reject_sample_size: int = 5) -> None:
        if reject_sample_size < 0:
            raise ValueError("reject_sample_size must be >= 0")
        self._feed = feed
        self._record_model = record_model
        self._reject_sample_size = reject_sample_size

    def filter(self, raw_records: Sequence[object]) -> QualityResult[RecordT]:
        accepted: list[RecordT] = []
        rejected_samples: list[QualityRejectedSample] = []
        for raw in raw_records:
            try:
                record = self._record_model.model_validate(raw)
            except ValidationError:
                reject_reason: str | None = "invalid_record"
            else:
                reject_reason = self._reject_reason(record)
                if reject_reason is None:
                    accepted.append(record)
                    continue
            if len(rejected_samples) < self._reject_sample_size:
                rejected_samples.append(QualityRejectedSample(record_id=self._record_id(raw), reason=reject_reason))
        return QualityResult(
            accepted=accepted,
            rejected_count=len(raw_records) - len(accepted),
            rejected_samples=rejected_samples,
        )

    def apply(self, raw_records: Sequence[object], origin: str) -> FeedCollection[RecordT]:
        result = self.filter(raw_records)
        if result.rejected_count:
            logger.info(
                "feed_records_filtered",
                extra={
                    "feed": self._feed,
                    "origin": origin,
                    "received": len(raw_records),
                    "rejected": result.rejected_count,
                    "samples": ", ".join(f"{s.record_id}:{s.reason}" for s in result.rejected_samples),
                },
            )
        return FeedCollection(data=tuple(result.accepted))

    def _reject_reason(self, record: RecordT) -> str | None:
        return None

    def _record_id(self, raw: object) -> str:
        if isinstance(raw, dict):
            return str(raw.get(self.id_field, "?"))
        return "?"


class EmergencyQualityGate(FeedQualityGate[Emergency]):
    def __init__(self, max_people: int = DEFAULT_MAX_PEOPLE_PER_REPORT, reject_sample_size: int = 5) -> None:
        super().__init__("emergency", Emergency, reject_sample_size=reject_sample_size)
        self._max_people = max_people

    def _reject_reason(self, record: Emergency) -> str | None:
        if record.number_of_people > self._max_people:
            return "number_of_people_over_limit"
        return None


class ReliefActionQualityGate(FeedQualityGate[ReliefAction]):
    id_field = "DonationID"

    def __init__(self, reject_sample_size: int = 5) -> None:
        super().__init__("relief action", ReliefAction, reject_sample_size=reject_sample_size)

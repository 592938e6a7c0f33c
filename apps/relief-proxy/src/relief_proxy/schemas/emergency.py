from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from relief_proxy.schemas.relief_action import ReliefAction


class UrgencyLevel(StrEnum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def severity(self) -> int:
        return _URGENCY_SEVERITY[self]


_URGENCY_SEVERITY = {
    UrgencyLevel.LOW: 1,
    UrgencyLevel.MEDIUM: 2,
    UrgencyLevel.HIGH: 3,
    UrgencyLevel.CRITICAL: 4,
}


class EmergencyStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class Emergency(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    latitude: float
    longitude: float
    placename: str | None = ""
    contactno: str | None = ""
    accuracy: float | None = None
    timestamp: str | None = None
    needs: list[str] | None = Field(default_factory=list)
    number_of_people: int = Field(alias="numberOfPeople", ge=0)
    urgency_level: UrgencyLevel = Field(alias="urgencyLevel")
    status: EmergencyStatus
    additional_notes: str | None = Field(default="", alias="additionalNotes")
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")

    has_relief_action: bool | None = Field(default=None, alias="hasReliefAction")
    relief_action_distance: float | None = Field(default=None, alias="reliefActionDistance")
    relief_action_details: ReliefAction | None = Field(default=None, alias="reliefActionDetails")

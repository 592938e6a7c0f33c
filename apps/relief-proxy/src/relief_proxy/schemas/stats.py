from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StatItem(BaseModel):
    label: str
    value: int


class DashboardStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_emergencies: int
    total_people: int
    avg_people: int
    median_people: float
    pending_count: int
    needs_stats: list[StatItem]
    urgency_stats: list[StatItem]
    status_stats: list[StatItem]

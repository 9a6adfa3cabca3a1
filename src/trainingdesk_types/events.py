from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import Field, computed_field, field_validator

from .base import WireModel
from .derived import RiskLevel, risk_level


class EventStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def coerce_identifier(value):
    # numeric ids from the backend are normalised to strings
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


def coerce_timestamp(value):
    # date-only values are read as midnight
    if isinstance(value, str) and len(value) == 10:
        return f"{value}T00:00:00"
    if value == "":
        return None
    return value


class Event(WireModel):
    id: str = Field(..., min_length=1)
    title: str
    description: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: str = ""
    instructor: str = ""
    max_capacity: int = Field(0, ge=0)
    current_enrollment: int = Field(0, ge=0)
    ceu_credits: float = Field(0, ge=0)
    status: EventStatus = EventStatus.UPCOMING
    tags: list[str] = Field(default_factory=list)

    @field_validator('id', mode='before')
    @classmethod
    def cast_id_to_str(cls, value):
        return coerce_identifier(value)

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def cast_date_to_timestamp(cls, value):
        return coerce_timestamp(value)

    @field_validator('description', 'location', 'instructor', mode='before')
    @classmethod
    def cast_none_to_empty(cls, value):
        return "" if value is None else value

    @computed_field(alias="riskLevel")
    @property
    def risk_level(self) -> RiskLevel:
        """Enrollment pressure, recomputed from enrollment and capacity on every read"""
        return risk_level(self.current_enrollment, self.max_capacity)


__all__ = ["Event", "EventStatus", "RiskLevel"]

"""
Query models consumed by the in-memory query engine.

These describe what the dashboard asks for after the backend has been
queried: predicate values, sort key and direction, page.
"""

from datetime import date
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .derived import RiskLevel
from .events import EventStatus


def split_csv(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


class SortKey(str, Enum):
    LAST_NAME = "lastName"
    LICENSE_STATE = "license.state"
    OCCUPATION = "occupation"
    PROGRESS_PERCENTAGE = "progressPercentage"
    COMPLETION_STATUS = "completionStatus"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class EventQuery(BaseModel):
    search: Optional[str] = None
    status: list[EventStatus] = Field(default_factory=list)
    risk_level: list[RiskLevel] = Field(default_factory=list)
    instructor: Optional[str] = None
    min_ceu_credits: float = Field(0, ge=0)
    tags: list[str] = Field(default_factory=list)
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    model_config = ConfigDict(frozen=True)

    @field_validator('status', 'risk_level', 'tags', mode='before')
    @classmethod
    def cast_csv_to_list(cls, value):
        return split_csv(value)

    @field_validator('date_from', 'date_to', mode='before')
    @classmethod
    def cast_empty_to_none(cls, value):
        return None if value == "" else value

    def gateway_params(self) -> dict:
        """The subset of predicates the course backend understands."""
        return {
            "search": self.search,
            "status": [s.value for s in self.status] or None,
            "instructor": self.instructor,
            "date_from": self.date_from,
            "date_to": self.date_to,
        }


class StudentQuery(BaseModel):
    search: Optional[str] = None
    sort_by: Optional[SortKey] = None
    order: SortOrder = SortOrder.ASC

    model_config = ConfigDict(frozen=True)


class BrowseState(BaseModel):
    """
    View state of a paginated event grid.

    Any change of filters returns the state to page 1; paging alone keeps
    the filters.
    """

    query: EventQuery = Field(default_factory=EventQuery)
    page: int = Field(1, ge=1)
    page_size: int = Field(9, ge=1)

    model_config = ConfigDict(frozen=True)

    def with_filters(self, query: EventQuery) -> "BrowseState":
        if query == self.query:
            return self
        return self.model_copy(update={"query": query, "page": 1})

    def with_page(self, page: int) -> "BrowseState":
        if page < 1:
            raise ValueError("page must be >= 1")
        return self.model_copy(update={"page": page})

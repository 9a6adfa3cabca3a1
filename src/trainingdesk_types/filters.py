from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional, Union
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class GatewayFilter(BaseModel, ABC):
    """Filters forwarded to the course backend. Unknown keys are ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @abstractmethod
    def to_params(self) -> dict[str, str]:
        """Query parameters for the backend, with empty values dropped."""
        ...


def _format_param(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set)):
        joined = ",".join(str(v) for v in value if v)
        return joined or None
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    return text or None


class EventFilter(GatewayFilter):
    search: Optional[str] = None
    status: Optional[Union[str, list[str]]] = None
    instructor: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @field_validator('date_from', 'date_to', mode='before')
    @classmethod
    def cast_empty_to_none(cls, value):
        return None if value == "" else value

    def to_params(self) -> dict[str, str]:
        params = {
            "search": _format_param(self.search),
            "status": _format_param(self.status),
            "instructor": _format_param(self.instructor),
            "date_from": _format_param(self.date_from),
            "date_to": _format_param(self.date_to),
        }
        return {k: v for k, v in params.items() if v is not None}


class StudentFilter(GatewayFilter):
    search: Optional[str] = None
    event_id: Optional[str] = None

    @field_validator('event_id', mode='before')
    @classmethod
    def cast_id_to_str(cls, value):
        if isinstance(value, int):
            return str(value)
        return value

    def to_params(self) -> dict[str, str]:
        params = {
            "search": _format_param(self.search),
            "event_id": _format_param(self.event_id),
        }
        return {k: v for k, v in params.items() if v is not None}

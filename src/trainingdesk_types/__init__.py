"""TrainingDesk Types - Pydantic DTOs shared by the gateway and the backend."""

__version__ = "0.1.0"

from .base import WireModel
from .events import Event, EventStatus, RiskLevel
from .students import (
    Certification,
    Clinic,
    CompletionStatus,
    CourseProgress,
    EventRoster,
    License,
    Student,
)
from .records import MalformedRecordError, parse_record, parse_records
from .results import BackendResult, GatewayErrorKind
from .filters import EventFilter, StudentFilter

__all__ = [
    "WireModel",
    "Event",
    "EventStatus",
    "RiskLevel",
    "Certification",
    "Clinic",
    "CompletionStatus",
    "CourseProgress",
    "EventRoster",
    "License",
    "Student",
    "MalformedRecordError",
    "parse_record",
    "parse_records",
    "BackendResult",
    "GatewayErrorKind",
    "EventFilter",
    "StudentFilter",
]

"""
Backend Gateway for the course-management API.

``CourseBackend`` is the capability the dashboard depends on; the HTTP
implementation is one way to provide it. Every operation returns a
``BackendResult`` and never raises: transport failures, non-2xx responses
and undecodable bodies all become ``BackendUnavailable``, a single record
that fails validation becomes ``MalformedRecord``.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar, Union
from urllib.parse import quote
import logging

from pydantic import ValidationError

from trainingdesk_types.events import Event
from trainingdesk_types.filters import EventFilter, StudentFilter
from trainingdesk_types.records import MalformedRecordError, parse_record, parse_records
from trainingdesk_types.results import BackendResult, GatewayErrorKind
from trainingdesk_types.students import EventRoster, Student

from trainingdesk_client.exceptions import CourseApiError, InvalidResponseError
from trainingdesk_client.http import AsyncHTTPClient, BasicAuthProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

EventFilterInput = Union[EventFilter, Mapping[str, Any], None]
StudentFilterInput = Union[StudentFilter, Mapping[str, Any], None]


class CourseBackend(ABC):
    """Read-only access to events, rosters and students."""

    @abstractmethod
    async def list_events(self, filter: EventFilterInput = None) -> BackendResult[list[Event]]:
        ...

    @abstractmethod
    async def get_event(self, event_id: str) -> BackendResult[Event]:
        ...

    @abstractmethod
    async def get_roster(self, event_id: str) -> BackendResult[EventRoster]:
        ...

    @abstractmethod
    async def list_students(self, filter: StudentFilterInput = None) -> BackendResult[list[Student]]:
        ...

    @abstractmethod
    async def get_student(self, student_id: str) -> BackendResult[Student]:
        ...

    async def close(self) -> None:
        """Release transport resources."""
        return None


def _segment(identifier: str) -> str:
    return quote(str(identifier), safe="")


def _expect_list(payload: Any, path: str) -> list:
    if not isinstance(payload, list):
        raise InvalidResponseError(f"Expected a JSON array from {path}, got {type(payload).__name__}")
    return payload


def _as_filter_input(filter: Any) -> Any:
    if filter is None:
        return {}
    if isinstance(filter, Mapping):
        return dict(filter)
    return filter


class HttpCourseBackend(CourseBackend):
    """
    ``CourseBackend`` over the course-management REST API.

    Issues exactly one outbound request per operation with the configured
    Basic credentials.
    """

    def __init__(self, http: AsyncHTTPClient):
        self._http = http

    @classmethod
    def create(
        cls,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
    ) -> "HttpCourseBackend":
        return cls(
            AsyncHTTPClient(
                base_url=base_url,
                auth_provider=BasicAuthProvider(username, password),
                timeout=timeout,
            )
        )

    async def close(self) -> None:
        await self._http.close()

    async def __aenter__(self) -> "HttpCourseBackend":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _call(self, operation: str, fetch: Callable[[], Awaitable[T]]) -> BackendResult[T]:
        try:
            value = await fetch()
        except MalformedRecordError as e:
            logger.warning(f"{operation}: {e}")
            return BackendResult.failure(str(e), GatewayErrorKind.MALFORMED_RECORD)
        except CourseApiError as e:
            logger.warning(f"{operation} failed: {e}")
            return BackendResult.failure(e.message, GatewayErrorKind.BACKEND_UNAVAILABLE)
        return BackendResult.success(value)

    async def list_events(self, filter: EventFilterInput = None) -> BackendResult[list[Event]]:
        try:
            event_filter = EventFilter.model_validate(_as_filter_input(filter))
        except ValidationError as e:
            return BackendResult.failure(f"Invalid event filter: {e}", GatewayErrorKind.INVALID_FILTER)

        async def fetch() -> list[Event]:
            payload = await self._http.get_json("/events", params=event_filter.to_params())
            return parse_records(Event, _expect_list(payload, "/events"))

        return await self._call("list_events", fetch)

    async def get_event(self, event_id: str) -> BackendResult[Event]:
        async def fetch() -> Event:
            payload = await self._http.get_json(f"/events/{_segment(event_id)}")
            return parse_record(Event, payload)

        return await self._call("get_event", fetch)

    async def get_roster(self, event_id: str) -> BackendResult[EventRoster]:
        async def fetch() -> EventRoster:
            payload = await self._http.get_json(f"/events/{_segment(event_id)}/roster")
            # some deployments return the bare student list
            if isinstance(payload, dict):
                students = parse_records(Student, _expect_list(payload.get("students") or [], "/events/{id}/roster"))
                roster_event_id = payload.get("eventId") or event_id
            else:
                students = parse_records(Student, _expect_list(payload, "/events/{id}/roster"))
                roster_event_id = event_id
            return EventRoster.from_students(str(roster_event_id), students)

        return await self._call("get_roster", fetch)

    async def list_students(self, filter: StudentFilterInput = None) -> BackendResult[list[Student]]:
        try:
            student_filter = StudentFilter.model_validate(_as_filter_input(filter))
        except ValidationError as e:
            return BackendResult.failure(f"Invalid student filter: {e}", GatewayErrorKind.INVALID_FILTER)

        async def fetch() -> list[Student]:
            payload = await self._http.get_json("/students", params=student_filter.to_params())
            return parse_records(Student, _expect_list(payload, "/students"))

        return await self._call("list_students", fetch)

    async def get_student(self, student_id: str) -> BackendResult[Student]:
        async def fetch() -> Student:
            payload = await self._http.get_json(f"/students/{_segment(student_id)}")
            return parse_record(Student, payload)

        return await self._call("get_student", fetch)

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from trainingdesk_backend.api.dependencies import get_backend, unwrap
from trainingdesk_backend.api.events import student_query
from trainingdesk_backend.business_logic.query_engine import query_students
from trainingdesk_backend.permissions.auth import get_current_principal
from trainingdesk_client.gateway import CourseBackend
from trainingdesk_types.auth import StaffPrincipal
from trainingdesk_types.filters import StudentFilter
from trainingdesk_types.queries import StudentQuery
from trainingdesk_types.students import Student

student_router = APIRouter()


# serialized as returned, see the roster route in api/events.py
@student_router.get("", response_model=None, responses={200: {"model": list[Student]}})
async def list_students(
    principal: Annotated[StaffPrincipal, Depends(get_current_principal)],
    backend: Annotated[CourseBackend, Depends(get_backend)],
    query: Annotated[StudentQuery, Depends(student_query)],
    event_id: Optional[str] = Query(None, alias="eventId"),
) -> list[Student]:
    students = unwrap(await backend.list_students(StudentFilter(search=query.search, event_id=event_id)))
    return query_students(students, query)


@student_router.get("/{student_id}", response_model=None, responses={200: {"model": Student}})
async def get_student(
    student_id: str,
    principal: Annotated[StaffPrincipal, Depends(get_current_principal)],
    backend: Annotated[CourseBackend, Depends(get_backend)],
) -> Student:
    return unwrap(await backend.get_student(student_id))

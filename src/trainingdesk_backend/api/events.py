import asyncio
import logging
from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import ValidationError

from trainingdesk_backend.api.dependencies import bad_request_from, get_backend, unwrap
from trainingdesk_backend.business_logic.export import (
    ExportError,
    content_disposition,
    overview_filename,
    render_events_csv,
    render_roster_csv,
    roster_filename,
)
from trainingdesk_backend.business_logic.query_engine import (
    DEFAULT_EVENT_PAGE_SIZE,
    filter_events,
    paginate,
    query_students,
    total_pages,
)
from trainingdesk_backend.exceptions import ExportFailureException
from trainingdesk_backend.permissions.auth import get_current_principal
from trainingdesk_client.gateway import CourseBackend
from trainingdesk_types.auth import StaffPrincipal
from trainingdesk_types.events import Event
from trainingdesk_types.queries import EventQuery, SortKey, SortOrder, StudentQuery
from trainingdesk_types.students import EventRoster

logger = logging.getLogger(__name__)

events_router = APIRouter()


def event_query(
    search: Optional[str] = Query(None, description="Substring of title, description or instructor"),
    status: Optional[str] = Query(None, description="Comma separated statuses"),
    risk_level: Optional[str] = Query(None, alias="riskLevel", description="Comma separated risk levels"),
    instructor: Optional[str] = Query(None),
    min_ceu_credits: float = Query(0, alias="minCeuCredits", ge=0),
    tags: Optional[str] = Query(None, description="Comma separated tags"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
) -> EventQuery:
    try:
        return EventQuery(
            search=search,
            status=status,
            risk_level=risk_level,
            instructor=instructor,
            min_ceu_credits=min_ceu_credits,
            tags=tags,
            date_from=date_from,
            date_to=date_to,
        )
    except ValidationError as e:
        raise bad_request_from(e)


def student_query(
    search: Optional[str] = Query(None, description="Substring of name, occupation, license state or clinic"),
    sort_by: Optional[SortKey] = Query(None, alias="sortBy"),
    order: SortOrder = Query(SortOrder.ASC),
) -> StudentQuery:
    return StudentQuery(search=search, sort_by=sort_by, order=order)


async def fetch_events(backend: CourseBackend, query: EventQuery) -> list[Event]:
    events = unwrap(await backend.list_events(query.gateway_params()))
    return filter_events(events, query)


@events_router.get("", response_model=list[Event])
async def list_events(
    response: Response,
    principal: Annotated[StaffPrincipal, Depends(get_current_principal)],
    backend: Annotated[CourseBackend, Depends(get_backend)],
    query: Annotated[EventQuery, Depends(event_query)],
    page: Optional[int] = Query(None, ge=1),
    page_size: int = Query(DEFAULT_EVENT_PAGE_SIZE, alias="pageSize", ge=1, le=100),
) -> list[Event]:
    events = await fetch_events(backend, query)

    if page is None:
        response.headers["X-Total-Count"] = str(len(events))
        response.headers["X-Total-Pages"] = str(total_pages(len(events), page_size))
        return events

    result = paginate(events, page, page_size)
    response.headers["X-Total-Count"] = str(result.total_count)
    response.headers["X-Total-Pages"] = str(result.total_pages)
    return result.items


@events_router.get("/export")
async def export_events(
    principal: Annotated[StaffPrincipal, Depends(get_current_principal)],
    backend: Annotated[CourseBackend, Depends(get_backend)],
    query: Annotated[EventQuery, Depends(event_query)],
    title: Optional[str] = Query(None, description="Prefix for the download filename"),
) -> Response:
    events = await fetch_events(backend, query)

    try:
        content = render_events_csv(events)
    except ExportError as e:
        raise ExportFailureException(context={"reason": str(e)}, user_email=principal.email)

    logger.info(f"{principal.email} exported {len(events)} events")

    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": content_disposition(overview_filename(title))},
    )


@events_router.get("/{event_id}", response_model=Event)
async def get_event(
    event_id: str,
    principal: Annotated[StaffPrincipal, Depends(get_current_principal)],
    backend: Annotated[CourseBackend, Depends(get_backend)],
) -> Event:
    return unwrap(await backend.get_event(event_id))


# serialized as returned: re-validating the output would drop the excluded
# raw email and blank maskedEmail
@events_router.get("/{event_id}/roster", response_model=None, responses={200: {"model": EventRoster}})
async def get_event_roster(
    event_id: str,
    principal: Annotated[StaffPrincipal, Depends(get_current_principal)],
    backend: Annotated[CourseBackend, Depends(get_backend)],
    query: Annotated[StudentQuery, Depends(student_query)],
) -> EventRoster:
    roster = unwrap(await backend.get_roster(event_id))
    # totals keep describing the whole roster
    return roster.model_copy(update={"students": query_students(roster.students, query)})


@events_router.get("/{event_id}/export")
async def export_event_roster(
    event_id: str,
    principal: Annotated[StaffPrincipal, Depends(get_current_principal)],
    backend: Annotated[CourseBackend, Depends(get_backend)],
    query: Annotated[StudentQuery, Depends(student_query)],
) -> Response:
    event_result, roster_result = await asyncio.gather(
        backend.get_event(event_id),
        backend.get_roster(event_id),
    )
    event = unwrap(event_result)
    roster = unwrap(roster_result)

    students = query_students(roster.students, query)
    try:
        content = render_roster_csv(students)
    except ExportError as e:
        raise ExportFailureException(
            context={"event_id": event_id, "reason": str(e)},
            user_email=principal.email,
        )

    logger.info(f"{principal.email} exported roster of event {event_id} ({len(students)} students)")

    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": content_disposition(roster_filename(event.title))},
    )

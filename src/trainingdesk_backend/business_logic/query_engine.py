"""
In-memory filtering, sorting and pagination.

Operates on an already-fetched, bounded record set. Every filter dimension is
an independent predicate and a record passes only if all active predicates
match, so the order in which dimensions are applied never changes the result.
A record that cannot be evaluated (missing attribute, wrong type) is skipped
with a warning instead of aborting the pass.
"""

import logging
import math
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional, Sequence, TypeVar

from pydantic import BaseModel, Field

from trainingdesk_types.events import Event
from trainingdesk_types.queries import EventQuery, SortKey, SortOrder, StudentQuery
from trainingdesk_types.students import Student

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_EVENT_PAGE_SIZE = 9

Predicate = Callable[[Any], bool]


class Page(BaseModel):
    items: list[Any] = Field(default_factory=list)
    page: int
    page_size: int
    total_count: int
    total_pages: int


def _contains(haystack: Optional[str], needle: str) -> bool:
    return needle in (haystack or "").lower()


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


# ============================================================================
# PREDICATES
# ============================================================================


def search_events(term: str) -> Predicate:
    needle = term.strip().lower()
    return lambda e: (
        _contains(e.title, needle)
        or _contains(e.description, needle)
        or _contains(e.instructor, needle)
    )


def status_in(statuses: Iterable[Any]) -> Predicate:
    allowed = {getattr(s, "value", s) for s in statuses}
    return lambda e: e.status in allowed


def risk_level_in(levels: Iterable[Any]) -> Predicate:
    allowed = {getattr(level, "value", level) for level in levels}
    return lambda e: e.risk_level.value in allowed


def instructor_matches(name: str) -> Predicate:
    needle = name.strip().lower()
    return lambda e: _contains(e.instructor, needle)


def min_ceu_credits(threshold: float) -> Predicate:
    return lambda e: e.ceu_credits >= threshold


def has_any_tag(tags: Iterable[str]) -> Predicate:
    wanted = {tag.lower() for tag in tags}
    return lambda e: any(tag.lower() in wanted for tag in e.tags)


def starts_between(date_from: Optional[date], date_to: Optional[date]) -> Predicate:
    def predicate(e) -> bool:
        start = _as_date(e.start_date)
        if start is None:
            return False
        if date_from is not None and start < date_from:
            return False
        if date_to is not None and start > date_to:
            return False
        return True
    return predicate


def search_students(term: str) -> Predicate:
    needle = term.strip().lower()
    return lambda s: (
        _contains(s.first_name, needle)
        or _contains(s.last_name, needle)
        or _contains(s.occupation, needle)
        or _contains(s.license.state, needle)
        or _contains(s.clinic.name, needle)
    )


def event_predicates(query: EventQuery) -> list[Predicate]:
    """Active predicates for ``query``; empty sets and zero thresholds add none."""
    predicates: list[Predicate] = []
    if query.search and query.search.strip():
        predicates.append(search_events(query.search))
    if query.status:
        predicates.append(status_in(query.status))
    if query.risk_level:
        predicates.append(risk_level_in(query.risk_level))
    if query.instructor and query.instructor.strip():
        predicates.append(instructor_matches(query.instructor))
    if query.min_ceu_credits > 0:
        predicates.append(min_ceu_credits(query.min_ceu_credits))
    if query.tags:
        predicates.append(has_any_tag(query.tags))
    if query.date_from is not None or query.date_to is not None:
        predicates.append(starts_between(query.date_from, query.date_to))
    return predicates


def student_predicates(query: StudentQuery) -> list[Predicate]:
    if query.search and query.search.strip():
        return [search_students(query.search)]
    return []


def apply_predicates(records: Iterable[T], predicates: Sequence[Predicate]) -> list[T]:
    """Keep records matching every predicate, skipping records that cannot be evaluated."""
    result = []
    for record in records:
        try:
            if all(predicate(record) for predicate in predicates):
                result.append(record)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed record {getattr(record, 'id', '?')} during filtering: {e}")
    return result


def filter_events(events: Iterable[Event], query: EventQuery) -> list[Event]:
    return apply_predicates(events, event_predicates(query))


def filter_students(students: Iterable[Student], query: StudentQuery) -> list[Student]:
    return apply_predicates(students, student_predicates(query))


# ============================================================================
# SORTING
# ============================================================================


SORT_KEYS: dict[SortKey, Callable[[Student], Any]] = {
    SortKey.LAST_NAME: lambda s: s.last_name,
    SortKey.LICENSE_STATE: lambda s: s.license.state,
    SortKey.OCCUPATION: lambda s: s.occupation,
    SortKey.PROGRESS_PERCENTAGE: lambda s: s.progress.progress_percentage,
    SortKey.COMPLETION_STATUS: lambda s: s.completion_status,
}


def _normalize(value: Any) -> Any:
    value = getattr(value, "value", value)
    if isinstance(value, str):
        return value.casefold()
    return value


def sort_records(
    records: Iterable[T],
    key: Callable[[T], Any],
    order: SortOrder = SortOrder.ASC,
) -> list[T]:
    """
    Stable sort by ``key``; string keys compare case-insensitively.

    Records whose key cannot be read are skipped with a warning. Equal keys
    keep their prior relative order in both directions.
    """
    keyed = []
    for record in records:
        try:
            keyed.append((_normalize(key(record)), record))
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed record {getattr(record, 'id', '?')} during sorting: {e}")

    # sorted(reverse=True) keeps equal elements in their original order
    try:
        keyed = sorted(keyed, key=lambda pair: pair[0], reverse=order == SortOrder.DESC)
    except TypeError:
        keyed = sorted(keyed, key=lambda pair: str(pair[0]), reverse=order == SortOrder.DESC)
    return [record for _, record in keyed]


def sort_students(students: Iterable[Student], sort_by: Optional[SortKey], order: SortOrder = SortOrder.ASC) -> list[Student]:
    if sort_by is None:
        return list(students)
    return sort_records(students, SORT_KEYS[SortKey(sort_by)], SortOrder(order))


def query_students(students: Iterable[Student], query: StudentQuery) -> list[Student]:
    """Filter then sort a roster view."""
    return sort_students(filter_students(students, query), query.sort_by, query.order)


# ============================================================================
# PAGINATION
# ============================================================================


def total_pages(count: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    return math.ceil(count / page_size)


def paginate(records: Sequence[T], page: int = 1, page_size: int = DEFAULT_EVENT_PAGE_SIZE) -> Page:
    """
    Slice a 1-indexed page out of ``records``.

    A page past the end yields an empty slice rather than an error.
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    pages = total_pages(len(records), page_size)
    start = (page - 1) * page_size
    return Page(
        items=list(records[start:start + page_size]),
        page=page,
        page_size=page_size,
        total_count=len(records),
        total_pages=pages,
    )

"""
CSV export of rosters and event overviews.

A column mapping is an ordered list of ``(header, extractor)`` pairs. Cells
are rendered with the stdlib ``csv`` writer, so commas, quotes and newlines
inside values survive a round trip through any CSV parser.
"""

import csv
import io
import logging
import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence

from trainingdesk_types.derived import utilization_percent
from trainingdesk_types.events import Event
from trainingdesk_types.students import Student

logger = logging.getLogger(__name__)

Column = tuple[str, Callable[[Any], Any]]

LIST_DELIMITER = ", "
CERTIFICATION_DELIMITER = "; "


class ExportError(Exception):
    """Rendering a CSV document failed."""


def format_cell(value: Any) -> str:
    """Render one cell value as text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        if value.time() == datetime.min.time() and value.tzinfo is None:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return LIST_DELIMITER.join(format_cell(v) for v in value)
    return str(value)


def format_certifications(student: Student) -> str:
    return CERTIFICATION_DELIMITER.join(cert.label() for cert in student.certifications)


ROSTER_COLUMNS: list[Column] = [
    ("Student ID", lambda s: s.id),
    ("First Name", lambda s: s.first_name),
    ("Last Name", lambda s: s.last_name),
    ("Masked Email", lambda s: s.masked_email),
    ("License Type", lambda s: s.license.type),
    ("License Number", lambda s: s.license.number),
    ("License State", lambda s: s.license.state),
    ("License Expiration", lambda s: s.license.expiration_date),
    ("Occupation", lambda s: s.occupation),
    ("Instruments", lambda s: LIST_DELIMITER.join(s.instruments)),
    ("Clinic Name", lambda s: s.clinic.name),
    ("Clinic Address", lambda s: s.clinic.address),
    ("Clinic Phone", lambda s: s.clinic.phone),
    ("Course Progress (%)", lambda s: s.progress.progress_percentage),
    ("Completed Lessons", lambda s: s.progress.completed_lessons),
    ("Total Lessons", lambda s: s.progress.total_lessons),
    ("Last Access", lambda s: s.progress.last_access_date),
    ("Certificate Earned", lambda s: bool(s.progress.certificate_earned)),
    ("Enrollment Date", lambda s: s.enrollment_date),
    ("Completion Status", lambda s: s.completion_status),
    ("Certifications", format_certifications),
]

EVENT_COLUMNS: list[Column] = [
    ("Event ID", lambda e: e.id),
    ("Title", lambda e: e.title),
    ("Start Date", lambda e: e.start_date),
    ("End Date", lambda e: e.end_date),
    ("Location", lambda e: e.location),
    ("Instructor", lambda e: e.instructor),
    ("Capacity", lambda e: e.max_capacity),
    ("Enrolled", lambda e: e.current_enrollment),
    ("CEU Credits", lambda e: e.ceu_credits),
    ("Status", lambda e: e.status),
    ("Risk Level", lambda e: e.risk_level),
    ("Utilization %", lambda e: utilization_percent(e.current_enrollment, e.max_capacity)),
    ("Tags", lambda e: LIST_DELIMITER.join(e.tags)),
]


def render_row(record: Any, columns: Sequence[Column]) -> list[str]:
    return [format_cell(extract(record)) for _, extract in columns]


def render_csv(records: Iterable[Any], columns: Sequence[Column]) -> str:
    """
    Render ``records`` as CSV text: a header row, then one row per record.

    Records whose values cannot be extracted are skipped with a warning.

    Raises:
        ExportError: If writing the document fails for any other reason.
    """
    buffer = io.StringIO()
    try:
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
        writer.writerow([header for header, _ in columns])

        for record in records:
            try:
                row = render_row(record, columns)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed record {getattr(record, 'id', '?')} in export: {e}")
                continue
            writer.writerow(row)
    except csv.Error as e:
        raise ExportError(f"CSV generation failed: {e}") from e

    return buffer.getvalue()


def render_roster_csv(students: Iterable[Student]) -> str:
    return render_csv(students, ROSTER_COLUMNS)


def render_events_csv(events: Iterable[Event]) -> str:
    return render_csv(events, EVENT_COLUMNS)


def sanitize_title(title: str) -> str:
    """Replace every character outside [a-zA-Z0-9] with an underscore."""
    return re.sub(r"[^a-zA-Z0-9]", "_", title or "")


def roster_filename(event_title: str) -> str:
    return f"{sanitize_title(event_title)}_roster.csv"


def overview_filename(title: Optional[str] = None, on: Optional[date] = None) -> str:
    stamp = (on or date.today()).isoformat()
    prefix = sanitize_title(title) if title else "events-overview"
    return f"{prefix}-{stamp}.csv"


def content_disposition(filename: str) -> str:
    return f'attachment; filename="{filename}"'

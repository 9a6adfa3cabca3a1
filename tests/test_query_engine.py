"""Tests for in-memory filtering, sorting and pagination."""

import logging
from types import SimpleNamespace

import pytest

from trainingdesk_backend.business_logic.query_engine import (
    apply_predicates,
    event_predicates,
    filter_events,
    filter_students,
    paginate,
    query_students,
    sort_records,
    sort_students,
    total_pages,
)
from trainingdesk_types.events import Event
from trainingdesk_types.queries import BrowseState, EventQuery, SortKey, SortOrder, StudentQuery
from trainingdesk_types.records import parse_records
from trainingdesk_types.students import Student

from conftest import make_event_payload, make_student_payload


def ids(records):
    return [r.id for r in records]


@pytest.fixture
def catalog():
    return parse_records(Event, [
        make_event_payload(id=1, title="Basic", currentEnrollment=18, maxCapacity=20, ceuCredits=12,
                           status="upcoming", tags=["basic"], startDate="2025-03-15"),
        make_event_payload(id=2, title="Adv", description="Advanced upper extremity", instructor="Dr. Mike Chen",
                           currentEnrollment=8, maxCapacity=15, ceuCredits=8, status="ongoing",
                           tags=["advanced"], startDate="2025-04-20"),
        make_event_payload(id=3, title="Refresher", description="Review session", instructor="Dr. Sarah Johnson",
                           currentEnrollment=10, maxCapacity=14, ceuCredits=4, status="completed",
                           tags=["Refresher", "advanced"], startDate="2025-05-01T08:30:00"),
        make_event_payload(id=4, title="Cancelled Workshop", description="", instructor="Pat Lee",
                           currentEnrollment=0, maxCapacity=0, ceuCredits=0, status="cancelled",
                           tags=[], startDate="2025-06-10"),
    ])


@pytest.mark.unit
class TestEventFiltering:
    """Tests for event predicates."""

    def test_end_to_end_no_constraints(self, events):
        """Test an empty status set and zero CEU threshold keep every event."""
        result = filter_events(events, EventQuery(min_ceu_credits=0, status=[]))
        assert ids(result) == ["1", "2"]
        assert [e.risk_level for e in result] == ["high", "low"]

    def test_search_matches_title_description_or_instructor(self, catalog):
        assert ids(filter_events(catalog, EventQuery(search="basic"))) == ["1"]
        assert ids(filter_events(catalog, EventQuery(search="UPPER"))) == ["2"]
        assert ids(filter_events(catalog, EventQuery(search="sarah"))) == ["1", "3"]

    def test_status_set_membership(self, catalog):
        query = EventQuery(status=["upcoming", "completed"])
        assert ids(filter_events(catalog, query)) == ["1", "3"]

    def test_status_from_comma_list(self, catalog):
        assert ids(filter_events(catalog, EventQuery(status="ongoing,cancelled"))) == ["2", "4"]

    def test_risk_level_set_membership(self, catalog):
        # 18/20 high, 8/15 low, 10/14 medium, capacity 0 high
        assert ids(filter_events(catalog, EventQuery(risk_level=["high"]))) == ["1", "4"]
        assert ids(filter_events(catalog, EventQuery(risk_level=["medium", "low"]))) == ["2", "3"]

    def test_instructor_substring(self, catalog):
        assert ids(filter_events(catalog, EventQuery(instructor="chen"))) == ["2"]

    def test_min_ceu_credits(self, catalog):
        assert ids(filter_events(catalog, EventQuery(min_ceu_credits=8))) == ["1", "2"]

    def test_tags_any_match_case_insensitive(self, catalog):
        assert ids(filter_events(catalog, EventQuery(tags="refresher"))) == ["3"]
        assert ids(filter_events(catalog, EventQuery(tags=["advanced", "basic"]))) == ["1", "2", "3"]

    def test_date_range_is_inclusive(self, catalog):
        query = EventQuery(date_from="2025-04-20", date_to="2025-05-01")
        assert ids(filter_events(catalog, query)) == ["2", "3"]

    def test_all_predicates_must_match(self, catalog):
        query = EventQuery(search="dr.", status=["upcoming", "ongoing"], min_ceu_credits=10)
        assert ids(filter_events(catalog, query)) == ["1"]

    def test_inactive_dimensions_add_no_predicates(self):
        assert event_predicates(EventQuery(search="  ", status=[], min_ceu_credits=0)) == []

    def test_dimensions_commute(self, catalog):
        """Test status-then-search equals search-then-status."""
        by_status = EventQuery(status=["upcoming", "completed"])
        by_search = EventQuery(search="sarah")

        status_first = filter_events(filter_events(catalog, by_status), by_search)
        search_first = filter_events(filter_events(catalog, by_search), by_status)
        combined = filter_events(catalog, EventQuery(status=["upcoming", "completed"], search="sarah"))

        assert ids(status_first) == ids(search_first) == ids(combined) == ["1", "3"]

    def test_malformed_record_is_skipped(self, catalog, caplog):
        broken = SimpleNamespace(id="broken", title="Basic")  # no description or instructor
        records = [broken] + catalog
        with caplog.at_level(logging.WARNING):
            result = filter_events(records, EventQuery(search="zzz-no-title-match"))
        assert result == []
        assert "Skipping malformed record broken" in caplog.text


@pytest.mark.unit
class TestStudentFiltering:
    """Tests for roster search."""

    @pytest.mark.parametrize(
        "term,expected",
        [
            ("jane", ["s1"]),           # first name
            ("ADAMS", ["s2"]),          # last name
            ("athletic", ["s3"]),       # occupation
            ("oh", ["s2"]),             # license state
            ("campus", ["s3"]),         # clinic name
            ("", ["s1", "s2", "s3"]),
        ],
    )
    def test_search_fields(self, students, term, expected):
        assert ids(filter_students(students, StudentQuery(search=term))) == expected


@pytest.mark.unit
class TestSorting:
    """Tests for stable roster sorting."""

    def test_last_name_is_case_insensitive(self, students):
        result = sort_students(students, SortKey.LAST_NAME)
        assert [s.last_name for s in result] == ["adams", "Brown", "Smith"]

    def test_descending(self, students):
        result = sort_students(students, SortKey.PROGRESS_PERCENTAGE, SortOrder.DESC)
        assert ids(result) == ["s3", "s1", "s2"]

    def test_license_state(self, students):
        assert ids(sort_students(students, SortKey.LICENSE_STATE)) == ["s3", "s1", "s2"]

    def test_completion_status(self, students):
        assert [s.completion_status for s in sort_students(students, SortKey.COMPLETION_STATUS)] == [
            "completed", "enrolled", "in-progress",
        ]

    @pytest.mark.parametrize("order", [SortOrder.ASC, SortOrder.DESC])
    def test_stable_for_equal_keys(self, order):
        roster = parse_records(
            Student,
            [
                make_student_payload(id="a", lastName="Same", occupation="PT"),
                make_student_payload(id="b", lastName="same", occupation="DC"),
                make_student_payload(id="c", lastName="Other", occupation="AT"),
                make_student_payload(id="d", lastName="SAME", occupation="OT"),
            ],
        )
        once = sort_students(roster, SortKey.LAST_NAME, order)
        twice = sort_students(once, SortKey.LAST_NAME, order)

        same = [s.id for s in once if s.last_name.lower() == "same"]
        assert same == ["a", "b", "d"]
        assert ids(twice) == ids(once)

    def test_no_sort_key_keeps_order(self, students):
        assert ids(sort_students(students, None)) == ["s1", "s2", "s3"]

    def test_unreadable_key_is_skipped(self, students, caplog):
        broken = SimpleNamespace(id="broken")
        with caplog.at_level(logging.WARNING):
            result = sort_records([broken] + students, lambda s: s.last_name)
        assert ids(result) == ["s2", "s3", "s1"]
        assert "broken" in caplog.text

    def test_query_filters_then_sorts(self, students):
        query = StudentQuery(search="a", sort_by=SortKey.LAST_NAME, order=SortOrder.DESC)
        # "a" appears in every student (Jane, adams, Amy)
        assert ids(query_students(students, query)) == ["s1", "s3", "s2"]


@pytest.mark.unit
class TestPagination:
    """Tests for page arithmetic."""

    def test_total_pages(self):
        assert total_pages(0, 9) == 0
        assert total_pages(9, 9) == 1
        assert total_pages(10, 9) == 2

    def test_slices(self):
        records = list(range(20))
        assert paginate(records, 1, 9).items == list(range(9))
        assert paginate(records, 3, 9).items == [18, 19]

    def test_page_past_end_is_empty(self):
        records = list(range(20))
        result = paginate(records, total_pages(20, 9) + 1, 9)
        assert result.items == []
        assert result.total_pages == 3
        assert result.total_count == 20

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            paginate([1, 2], 0, 9)
        with pytest.raises(ValueError):
            paginate([1, 2], 1, 0)

    def test_filter_change_resets_page(self):
        state = BrowseState().with_page(3)
        assert state.page == 3

        changed = state.with_filters(EventQuery(search="basic"))
        assert changed.page == 1
        assert changed.query.search == "basic"

    def test_same_filters_keep_page(self):
        state = BrowseState(query=EventQuery(search="basic")).with_page(2)
        assert state.with_filters(EventQuery(search="basic")).page == 2

    def test_default_page_size(self):
        assert BrowseState().page_size == 9
        assert paginate(list(range(30))).page_size == 9

    def test_predicates_are_reusable(self, catalog):
        predicates = event_predicates(EventQuery(status=["upcoming"]))
        assert ids(apply_predicates(catalog, predicates)) == ids(apply_predicates(catalog, predicates)) == ["1"]

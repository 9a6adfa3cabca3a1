"""Pytest configuration and fixtures for TrainingDesk tests."""

from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from trainingdesk_backend.oauth import GoogleOAuthClient, OAuthError
from trainingdesk_backend.permissions.auth import get_current_principal
from trainingdesk_backend.server import create_app
from trainingdesk_backend.settings import BackendSettings
from trainingdesk_client.gateway import CourseBackend
from trainingdesk_types.auth import OAuthUserInfo, StaffPrincipal
from trainingdesk_types.events import Event
from trainingdesk_types.filters import EventFilter, StudentFilter
from trainingdesk_types.records import parse_records
from trainingdesk_types.results import BackendResult, GatewayErrorKind
from trainingdesk_types.students import EventRoster, Student


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network access")


# ============================================================================
# Payload builders
# ============================================================================


def make_event_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "id": "1",
        "title": "Basic",
        "description": "Introductory instrument-assisted technique course",
        "startDate": "2025-03-15T09:00:00",
        "endDate": "2025-03-16T17:00:00",
        "location": "Indianapolis, IN",
        "instructor": "Dr. Sarah Johnson",
        "maxCapacity": 20,
        "currentEnrollment": 18,
        "ceuCredits": 12,
        "status": "upcoming",
        "tags": ["basic", "certification"],
    }
    payload.update(overrides)
    return payload


def make_student_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "id": "s1",
        "firstName": "Jane",
        "lastName": "Smith",
        "email": "jane.smith@example.com",
        "license": {
            "type": "PT",
            "number": "PT12345",
            "state": "IN",
            "expirationDate": "2026-12-31",
        },
        "certifications": [
            {
                "type": "GT-M1",
                "number": "C-001",
                "issuedBy": "Graston Technique",
                "issueDate": "2024-01-10",
                "expirationDate": "2027-01-10",
            }
        ],
        "occupation": "Physical Therapist",
        "instruments": ["GT1", "GT2"],
        "clinic": {
            "name": "Smith Rehab",
            "address": "1 Main St, Indianapolis, IN",
            "phone": "317-555-0100",
        },
        "learnDashProgress": {
            "courseId": "c1",
            "courseName": "Module 1",
            "progressPercentage": 75,
            "completedLessons": 6,
            "totalLessons": 8,
            "lastAccessDate": "2025-03-01",
            "certificateEarned": False,
        },
        "enrollmentDate": "2025-01-15",
        "completionStatus": "in-progress",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def event_payloads() -> List[Dict[str, Any]]:
    return [
        make_event_payload(id=1, title="Basic", currentEnrollment=18, maxCapacity=20),
        make_event_payload(
            id=2,
            title="Adv",
            description="Advanced upper extremity",
            instructor="Dr. Mike Chen",
            currentEnrollment=8,
            maxCapacity=15,
            status="ongoing",
            ceuCredits=8,
            startDate="2025-04-20",
            tags=["advanced"],
        ),
    ]


@pytest.fixture
def student_payloads() -> List[Dict[str, Any]]:
    return [
        make_student_payload(id="s1", firstName="Jane", lastName="Smith", completionStatus="completed"),
        make_student_payload(
            id="s2",
            firstName="Robert",
            lastName="adams",
            email="rb@clinic.org",
            occupation="Chiropractor",
            license={"type": "DC", "number": "DC777", "state": "OH", "expirationDate": "2026-06-30"},
            clinic={"name": "Adams Chiropractic", "address": "22 Elm", "phone": "555"},
            learnDashProgress={"progressPercentage": 40, "completedLessons": 2, "totalLessons": 5},
        ),
        make_student_payload(
            id="s3",
            firstName="Amy",
            lastName="Brown",
            email="a@x.com",
            occupation="Athletic Trainer",
            license={"type": "AT", "number": "AT1", "state": "IL"},
            clinic={"name": "Campus Sports Med"},
            learnDashProgress={"progressPercentage": 100, "completedLessons": 5, "totalLessons": 5, "certificateEarned": True},
            completionStatus="enrolled",
        ),
    ]


@pytest.fixture
def events(event_payloads) -> List[Event]:
    return parse_records(Event, event_payloads)


@pytest.fixture
def students(student_payloads) -> List[Student]:
    return parse_records(Student, student_payloads)


# ============================================================================
# In-memory course backend
# ============================================================================


class FakeCourseBackend(CourseBackend):
    """CourseBackend serving fixed records, recording the filters it receives."""

    def __init__(
        self,
        events: Optional[List[Event]] = None,
        students: Optional[List[Student]] = None,
        failure: Optional[BackendResult] = None,
    ):
        self.events = events or []
        self.students = students or []
        self.failure = failure
        self.event_filters: List[EventFilter] = []
        self.student_filters: List[StudentFilter] = []
        self.closed = False

    async def list_events(self, filter=None):
        if self.failure:
            return self.failure
        self.event_filters.append(EventFilter.model_validate(filter or {}))
        return BackendResult.success(list(self.events))

    async def get_event(self, event_id):
        if self.failure:
            return self.failure
        for event in self.events:
            if event.id == event_id:
                return BackendResult.success(event)
        return BackendResult.failure("API request failed: 404 Not Found", GatewayErrorKind.BACKEND_UNAVAILABLE)

    async def get_roster(self, event_id):
        if self.failure:
            return self.failure
        return BackendResult.success(EventRoster.from_students(event_id, list(self.students)))

    async def list_students(self, filter=None):
        if self.failure:
            return self.failure
        self.student_filters.append(StudentFilter.model_validate(filter or {}))
        return BackendResult.success(list(self.students))

    async def get_student(self, student_id):
        if self.failure:
            return self.failure
        for student in self.students:
            if student.id == student_id:
                return BackendResult.success(student)
        return BackendResult.failure("API request failed: 404 Not Found")

    async def close(self):
        self.closed = True


class FakeOAuthClient(GoogleOAuthClient):
    """GoogleOAuthClient returning a fixed userinfo document."""

    def __init__(self, userinfo: Optional[Dict[str, Any]] = None, fail: bool = False):
        super().__init__("client-id", "client-secret")
        self.userinfo = userinfo or {}
        self.fail = fail
        self.calls: List[Dict[str, str]] = []

    async def authenticate(self, code, redirect_uri):
        self.calls.append({"code": code, "redirect_uri": redirect_uri})
        if self.fail:
            raise OAuthError("Token exchange failed: 400", 400)
        return OAuthUserInfo.model_validate(self.userinfo)


# ============================================================================
# Application fixtures
# ============================================================================


@pytest.fixture
def settings() -> BackendSettings:
    return BackendSettings(
        course_api_url="http://cms.test/wp-json/graston/v1",
        course_api_username="dashboard",
        course_api_password="secret",
        oauth_client_id="client-id",
        oauth_client_secret="client-secret",
        session_secret="test-session-secret",
        allowed_email_domain="grastontechnique.com",
        debug_mode="production",
    )


@pytest.fixture
def staff_principal() -> StaffPrincipal:
    return StaffPrincipal(email="staff@grastontechnique.com", name="Staff Member")


@pytest.fixture
def backend(events, students) -> FakeCourseBackend:
    return FakeCourseBackend(events=events, students=students)


@pytest.fixture
def app(settings, backend):
    return create_app(settings=settings, backend=backend, oauth_client=FakeOAuthClient())


@pytest.fixture
def anonymous_client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def client(app, staff_principal) -> TestClient:
    app.dependency_overrides[get_current_principal] = lambda: staff_principal
    yield TestClient(app)
    app.dependency_overrides.clear()

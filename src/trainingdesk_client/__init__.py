"""
TrainingDesk Client - gateway to the course-management backend.

Example:
    async with HttpCourseBackend.create(
        "https://cms.example.com/wp-json/graston/v1",
        username="dashboard",
        password="app-password",
    ) as backend:
        result = await backend.list_events({"status": "upcoming"})
        if result.ok:
            for event in result.value:
                print(event.title, event.risk_level)
"""

__version__ = "0.1.0"

from trainingdesk_client.exceptions import (
    CourseApiError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ServerError,
    NetworkError,
    TimeoutError,
    InvalidResponseError,
)
from trainingdesk_client.http import AsyncHTTPClient, AuthProvider, BasicAuthProvider
from trainingdesk_client.gateway import CourseBackend, HttpCourseBackend
from trainingdesk_client.views import ViewLoader

__all__ = [
    "CourseApiError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ServerError",
    "NetworkError",
    "TimeoutError",
    "InvalidResponseError",
    "AsyncHTTPClient",
    "AuthProvider",
    "BasicAuthProvider",
    "CourseBackend",
    "HttpCourseBackend",
    "ViewLoader",
]

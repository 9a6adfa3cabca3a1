"""
Exception hierarchy for the course backend client.

Each exception carries the HTTP status (when there was a response) and any
error code the backend reported. The gateway folds all of them into a
``BackendUnavailable`` result; they never reach the API layer directly.
"""

from typing import Any, Dict, Optional


class CourseApiError(Exception):
    """
    Base exception for all course backend client errors.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code (if applicable)
        error_code: Backend error code (if the backend sent one)
        details: Additional error details from the response
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        parts = [self.message]
        if self.error_code:
            parts.insert(0, f"[{self.error_code}]")
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"status_code={self.status_code}, "
            f"error_code={self.error_code!r})"
        )


class AuthenticationError(CourseApiError):
    """The backend rejected the configured Basic credentials."""

    def __init__(self, message: str = "Backend authentication failed", **kwargs):
        kwargs.setdefault("status_code", 401)
        super().__init__(message, **kwargs)


class AuthorizationError(CourseApiError):
    """The configured backend account may not read this resource."""

    def __init__(self, message: str = "Backend access denied", **kwargs):
        kwargs.setdefault("status_code", 403)
        super().__init__(message, **kwargs)


class NotFoundError(CourseApiError):
    def __init__(self, message: str = "Resource not found", **kwargs):
        kwargs.setdefault("status_code", 404)
        super().__init__(message, **kwargs)


class ServerError(CourseApiError):
    """The backend answered with a 5xx status."""

    def __init__(self, message: str = "Backend server error", **kwargs):
        kwargs.setdefault("status_code", 500)
        super().__init__(message, **kwargs)


class NetworkError(CourseApiError):
    """Connection to the backend failed."""

    def __init__(self, message: str = "Network error", **kwargs):
        super().__init__(message, **kwargs)


class TimeoutError(NetworkError):
    """Request to the backend timed out."""

    def __init__(self, message: str = "Request timed out", **kwargs):
        super().__init__(message, **kwargs)


class InvalidResponseError(CourseApiError):
    """The backend answered 2xx with a body that is not JSON."""

    def __init__(self, message: str = "Invalid JSON in backend response", **kwargs):
        super().__init__(message, **kwargs)


STATUS_CODE_EXCEPTIONS = {
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
}


def exception_from_response(
    status_code: int,
    message: str,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> CourseApiError:
    """Create the exception matching an HTTP error status."""
    if 500 <= status_code < 600:
        exception_class = ServerError
    else:
        exception_class = STATUS_CODE_EXCEPTIONS.get(status_code, CourseApiError)
    return exception_class(
        message,
        status_code=status_code,
        error_code=error_code,
        details=details,
    )

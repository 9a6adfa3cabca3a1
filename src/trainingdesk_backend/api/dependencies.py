"""Request-scoped access to the application's collaborators."""

from typing import Any, Optional, TypeVar

from fastapi import Request
from pydantic import ValidationError

from trainingdesk_backend.exceptions import (
    BackendUnavailableException,
    BadRequestException,
    ConfigurationException,
    MalformedRecordException,
)
from trainingdesk_backend.oauth import GoogleOAuthClient
from trainingdesk_backend.settings import BackendSettings, get_settings
from trainingdesk_client.gateway import CourseBackend
from trainingdesk_types.results import BackendResult, GatewayErrorKind

T = TypeVar("T")


def get_app_settings(request: Request) -> BackendSettings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_backend(request: Request) -> CourseBackend:
    backend: Optional[CourseBackend] = getattr(request.app.state, "backend", None)
    if backend is None:
        raise ConfigurationException(detail="Course backend is not configured")
    return backend


def get_oauth_client(request: Request) -> GoogleOAuthClient:
    client: Optional[GoogleOAuthClient] = getattr(request.app.state, "oauth_client", None)
    if client is None or not client.configured:
        raise ConfigurationException(detail="Google sign-in is not configured")
    return client


def unwrap(result: BackendResult[T]) -> T:
    """Return the value of a successful gateway result or raise the matching API error."""
    if result.ok:
        return result.value

    context = {"backend_error": result.error}
    if result.kind == GatewayErrorKind.MALFORMED_RECORD:
        raise MalformedRecordException(context=context)
    if result.kind == GatewayErrorKind.INVALID_FILTER:
        raise BadRequestException(detail=result.error)
    raise BackendUnavailableException(context=context)


def bad_request_from(error: ValidationError) -> BadRequestException:
    errors: list[dict[str, Any]] = [
        {
            "field": ".".join(str(x) for x in item["loc"]),
            "message": item["msg"],
        }
        for item in error.errors()
    ]
    summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
    return BadRequestException(
        detail=f"Invalid query parameters: {summary}",
        context={"validation_errors": errors},
    )

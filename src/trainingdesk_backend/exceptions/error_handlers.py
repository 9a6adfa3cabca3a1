"""
FastAPI exception handlers for structured error responses.

This module provides exception handlers that convert TrainingDeskException
instances (and framework errors) into ``{error, error_code, message}`` JSON.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
import traceback
import logging

from trainingdesk_backend.exceptions.exceptions import (
    TrainingDeskException,
    AccessDeniedException,
    BadRequestException,
    InternalServerException,
    NotFoundException,
    RateLimitException,
    UnauthorizedException,
)
from trainingdesk_backend.settings import BackendSettings, get_settings


logger = logging.getLogger(__name__)


def _settings_for(request: Request) -> BackendSettings:
    return getattr(request.app.state, "settings", None) or get_settings()


def _include_debug(request: Request) -> bool:
    # Debug info (file paths, function names, line numbers) is only exposed
    # in development/local mode and can be force-disabled
    return _settings_for(request).include_debug_info


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


def _response_payload(exc: TrainingDeskException, include_debug: bool, with_details: bool = False) -> dict:
    error_response = exc.to_error_response(include_debug=include_debug)

    response_data = {
        "error": error_response.error,
        "error_code": error_response.error_code,
        "message": error_response.message,
    }

    if with_details and error_response.details:
        response_data["details"] = error_response.details

    if include_debug and error_response.debug:
        response_data["debug"] = error_response.debug.model_dump(exclude_none=True)

    return response_data


async def trainingdesk_exception_handler(request: Request, exc: TrainingDeskException) -> JSONResponse:
    """
    Handle TrainingDeskException instances.

    Converts the exception to a structured ErrorResponse and returns only the
    public fields; severity and category stay in the logs.
    """
    if exc.request_id is None:
        exc.request_id = _request_id(request)

    include_debug = _include_debug(request)
    response_data = _response_payload(exc, include_debug)

    log_error(request, exc)

    return JSONResponse(
        status_code=exc.status_code,
        content=response_data,
        headers=exc.headers or {},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors as VAL_001 with per-field details."""
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(x) for x in error["loc"][1:])  # Skip 'query'/'path' prefix
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    exception = BadRequestException(
        detail="Request validation failed",
        context={"validation_errors": errors},
        request_id=_request_id(request),
    )

    logger.warning(f"Validation error on {request.method} {request.url.path}: {errors}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_response_payload(exception, _include_debug(request), with_details=True),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle standard HTTPException from Starlette/FastAPI.

    Converts to the matching TrainingDeskException type based on status code.
    """
    exception_map = {
        status.HTTP_400_BAD_REQUEST: BadRequestException,
        status.HTTP_401_UNAUTHORIZED: UnauthorizedException,
        status.HTTP_403_FORBIDDEN: AccessDeniedException,
        status.HTTP_404_NOT_FOUND: NotFoundException,
        status.HTTP_429_TOO_MANY_REQUESTS: RateLimitException,
    }

    default_class = BadRequestException if 400 <= exc.status_code < 500 else InternalServerException
    exception_class = exception_map.get(exc.status_code, default_class)

    converted = exception_class(
        detail=exc.detail,
        headers=getattr(exc, "headers", None),
        request_id=_request_id(request),
    )
    # keep e.g. 405 instead of collapsing it into 400
    converted.status_code = exc.status_code

    return await trainingdesk_exception_handler(request, converted)


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle slowapi limits with the RATE_001 error."""
    exception = RateLimitException(
        detail=f"Rate limit exceeded: {exc.detail}",
        headers={"Retry-After": "60"},
        request_id=_request_id(request),
    )
    return await trainingdesk_exception_handler(request, exception)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full traceback and returns a generic internal server error.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc,
    )

    exception = InternalServerException(
        detail="An unexpected error occurred",
        context={
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
        request_id=_request_id(request),
    )

    include_debug = _include_debug(request)
    if include_debug:
        exception.context["traceback"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_response_payload(exception, include_debug),
    )


def log_error(request: Request, exception: TrainingDeskException) -> None:
    """Log error with structured information."""
    log_data = {
        "error_code": exception.error_code,
        "status_code": exception.status_code,
        "method": request.method,
        "path": request.url.path,
        "request_id": exception.request_id,
        "function": exception.function_name,
    }

    if exception.status_code >= 500:
        logger.error(f"Server error: {exception.error_code} {log_data} context={exception.context}")
    elif exception.status_code >= 400:
        logger.warning(f"Client error: {exception.error_code} {log_data}")
    else:
        logger.info(f"Error: {exception.error_code} {log_data}")


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(TrainingDeskException, trainingdesk_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.debug("Registered custom exception handlers")

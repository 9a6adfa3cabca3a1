"""
Error handling package for the TrainingDesk backend.

Usage:
    from trainingdesk_backend.exceptions import (
        NotFoundException,
        AccessDeniedException,
        register_exception_handlers,
    )
"""

from trainingdesk_backend.exceptions.exceptions import (
    # Base exception
    TrainingDeskException,

    # Authentication exceptions (401 / 400)
    UnauthorizedException,
    InvalidOAuthStateException,
    OAuthExchangeException,

    # Authorization exceptions (403)
    AccessDeniedException,

    # Client exceptions (400 / 404 / 429)
    BadRequestException,
    NotFoundException,
    RateLimitException,

    # External service exceptions (502)
    BackendUnavailableException,
    MalformedRecordException,

    # Server exceptions (500 / 503)
    ExportFailureException,
    ConfigurationException,
    InternalServerException,
)

from trainingdesk_backend.exceptions.error_registry import (
    load_error_registry,
    get_error_definition,
    get_all_error_codes,
)

from trainingdesk_backend.exceptions.error_handlers import register_exception_handlers

__all__ = [
    "TrainingDeskException",
    "UnauthorizedException",
    "InvalidOAuthStateException",
    "OAuthExchangeException",
    "AccessDeniedException",
    "BadRequestException",
    "NotFoundException",
    "RateLimitException",
    "BackendUnavailableException",
    "MalformedRecordException",
    "ExportFailureException",
    "ConfigurationException",
    "InternalServerException",
    "load_error_registry",
    "get_error_definition",
    "get_all_error_codes",
    "register_exception_handlers",
]

"""
Exceptions with error codes and rich metadata.

This module provides HTTP exceptions that integrate with the error registry
to give consistent error responses with unique error codes.
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, status
import inspect
from datetime import datetime, timezone

from trainingdesk_types.errors import ErrorDebugInfo, ErrorResponse


class TrainingDeskException(HTTPException):
    """
    Base exception class for all TrainingDesk exceptions.

    Provides:
    - Unique error codes from the registry
    - Structured error responses
    - Debug information in development mode
    - Context metadata for logging
    """

    def __init__(
        self,
        error_code: str,
        detail: Any = None,
        headers: Optional[Dict[str, str]] = None,
        context: Optional[Dict[str, Any]] = None,
        user_email: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        """
        Initialize exception with error code and metadata.

        Args:
            error_code: Error code from error registry (e.g., "AUTH_001")
            detail: Additional detail message (overrides registry message if provided)
            headers: HTTP response headers
            context: Additional context for debugging
            user_email: Staff email if available
            request_id: Request ID for tracing
        """
        self.error_code = error_code
        self.context = context or {}
        self.user_email = user_email
        self.request_id = request_id
        # HTTPException replaces a None detail with the status phrase
        self.override_detail = detail

        # Skip this __init__ and the subclass __init__
        frame = inspect.currentframe()
        caller_frame = frame.f_back.f_back if frame and frame.f_back else None
        if caller_frame:
            self.function_name = caller_frame.f_code.co_name
            self.file_name = caller_frame.f_code.co_filename
            self.line_number = caller_frame.f_lineno
        else:
            self.function_name = None
            self.file_name = None
            self.line_number = None

        # The actual status_code is set by subclasses
        super().__init__(status_code=500, detail=detail, headers=headers)

    def to_error_response(self, include_debug: bool = False) -> ErrorResponse:
        """
        Convert exception to structured ErrorResponse.

        Args:
            include_debug: Whether to include debug information (dev mode only)
        """
        from trainingdesk_backend.exceptions.error_registry import get_error_definition

        error_def = get_error_definition(self.error_code)

        debug_info = None
        if include_debug:
            debug_info = ErrorDebugInfo(
                timestamp=datetime.now(timezone.utc).isoformat(),
                request_id=self.request_id,
                function=self.function_name,
                file=self.file_name,
                line=self.line_number,
                user_email=self.user_email,
                additional_context=self.context,
            )

        message = error_def.message.plain
        details = self.context if self.context else None

        override = self.override_detail
        if override is not None:
            if isinstance(override, str) and override:
                message = override
            elif isinstance(override, dict):
                details = override
                if isinstance(override.get("message"), str):
                    message = override["message"]

        return ErrorResponse(
            error=error_def.title,
            error_code=self.error_code,
            message=message,
            details=details,
            severity=error_def.severity,
            category=error_def.category,
            retry_after=error_def.retry_after,
            debug=debug_info,
        )


# ============================================================================
# AUTHENTICATION EXCEPTIONS (401 / 400)
# ============================================================================


class UnauthorizedException(TrainingDeskException):
    """Authentication required - 401"""

    def __init__(self, error_code: str = "AUTH_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
        self.status_code = status.HTTP_401_UNAUTHORIZED


class InvalidOAuthStateException(TrainingDeskException):
    """OAuth state missing or mismatched - 400"""

    def __init__(self, error_code: str = "AUTH_002", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
        self.status_code = status.HTTP_400_BAD_REQUEST


class OAuthExchangeException(TrainingDeskException):
    """Code exchange or userinfo lookup failed - 401"""

    def __init__(self, error_code: str = "AUTH_003", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
        self.status_code = status.HTTP_401_UNAUTHORIZED


# ============================================================================
# AUTHORIZATION EXCEPTIONS (403)
# ============================================================================


class AccessDeniedException(TrainingDeskException):
    """Authenticated, but not a staff account of the organization - 403"""

    def __init__(self, error_code: str = "AUTHZ_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
        self.status_code = status.HTTP_403_FORBIDDEN


# ============================================================================
# CLIENT EXCEPTIONS (400 / 404 / 429)
# ============================================================================


class BadRequestException(TrainingDeskException):
    """Invalid request - 400"""

    def __init__(self, error_code: str = "VAL_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
        self.status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(TrainingDeskException):
    """Resource not found - 404"""

    def __init__(self, error_code: str = "NF_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
        self.status_code = status.HTTP_404_NOT_FOUND


class RateLimitException(TrainingDeskException):
    """Too many requests - 429"""

    def __init__(self, error_code: str = "RATE_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
        self.status_code = status.HTTP_429_TOO_MANY_REQUESTS


# ============================================================================
# EXTERNAL SERVICE EXCEPTIONS (502)
# ============================================================================


class BackendUnavailableException(TrainingDeskException):
    """Course backend unreachable or answered with an error - 502"""

    def __init__(self, error_code: str = "EXT_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
        self.status_code = status.HTTP_502_BAD_GATEWAY


class MalformedRecordException(TrainingDeskException):
    """Course backend returned an unreadable record - 502"""

    def __init__(self, error_code: str = "EXT_002", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
        self.status_code = status.HTTP_502_BAD_GATEWAY


# ============================================================================
# SERVER EXCEPTIONS (500 / 503)
# ============================================================================


class ExportFailureException(TrainingDeskException):
    """CSV generation failed - 500"""

    def __init__(self, error_code: str = "EXP_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
        self.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ConfigurationException(TrainingDeskException):
    """Required configuration missing - 503"""

    def __init__(self, error_code: str = "CFG_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
        self.status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class InternalServerException(TrainingDeskException):
    """Unexpected failure - 500"""

    def __init__(self, error_code: str = "INT_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
        self.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

"""
Error handling models and definitions for TrainingDesk.

This module provides structured error handling with:
- Unique error codes for every exception
- Rich metadata for debugging
- Multi-format error messages (plain text, markdown)
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class ErrorSeverity(str, Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    EXTERNAL_SERVICE = "external_service"
    EXPORT = "export"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class ErrorMessageFormat(BaseModel):
    """Multi-format error message."""
    plain: str = Field(..., description="Plain text error message")
    markdown: Optional[str] = Field(None, description="Markdown formatted message")


class ErrorDefinition(BaseModel):
    """Complete error definition from registry."""
    code: str = Field(..., description="Unique error code (e.g., AUTH_001)")
    http_status: int = Field(..., description="HTTP status code")
    category: ErrorCategory = Field(..., description="Error category")
    severity: ErrorSeverity = Field(..., description="Error severity")
    title: str = Field(..., description="Short error title, returned as 'error'")
    message: ErrorMessageFormat = Field(..., description="Error messages in multiple formats")
    retry_after: Optional[int] = Field(None, description="Seconds to wait before retry")

    internal_description: str = Field("", description="Internal description for developers")
    common_causes: list[str] = Field(default_factory=list, description="Common causes of this error")

    model_config = ConfigDict(use_enum_values=True)


class ErrorDebugInfo(BaseModel):
    """Debug information included in development mode."""
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    request_id: Optional[str] = Field(None, description="Request trace ID")
    function: Optional[str] = Field(None, description="Function where error occurred")
    file: Optional[str] = Field(None, description="File where error occurred")
    line: Optional[int] = Field(None, description="Line number where error occurred")
    user_email: Optional[str] = Field(None, description="Staff email if authenticated")
    additional_context: Optional[dict[str, Any]] = Field(None, description="Additional context")


class ErrorResponse(BaseModel):
    """Standard error response structure sent to clients."""
    error: str = Field(..., description="Error title from the taxonomy (e.g. Unauthorized)")
    error_code: str = Field(..., description="Unique error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Any] = Field(None, description="Additional error details")
    severity: ErrorSeverity = Field(..., description="Error severity")
    category: ErrorCategory = Field(..., description="Error category")
    retry_after: Optional[int] = Field(None, description="Seconds to wait before retry")

    # Debug information (only in development mode)
    debug: Optional[ErrorDebugInfo] = Field(None, description="Debug information (dev mode only)")

    model_config = ConfigDict(use_enum_values=True)

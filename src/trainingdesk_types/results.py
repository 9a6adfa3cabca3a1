from enum import Enum
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class GatewayErrorKind(str, Enum):
    BACKEND_UNAVAILABLE = "BackendUnavailable"
    MALFORMED_RECORD = "MalformedRecord"
    INVALID_FILTER = "InvalidFilter"


class BackendResult(BaseModel, Generic[T]):
    """
    Tagged result of a gateway call.

    Either ``ok`` is true and ``value`` holds the payload, or ``ok`` is false
    and ``error``/``kind`` describe the failure.
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    kind: Optional[GatewayErrorKind] = Field(None, description="Failure classification")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def success(cls, value: T) -> "BackendResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str, kind: GatewayErrorKind = GatewayErrorKind.BACKEND_UNAVAILABLE) -> "BackendResult[T]":
        return cls(ok=False, error=error, kind=kind)

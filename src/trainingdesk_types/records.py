"""
Structural validation of backend payloads.

Single payloads are validated strictly; lists are validated item by item so
that one malformed record never blanks the whole result set.
"""

import logging
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class MalformedRecordError(ValueError):
    """A backend record failed structural validation."""

    def __init__(self, reason: str, *, record_id: Optional[str] = None, model: Optional[str] = None):
        self.reason = reason
        self.record_id = record_id
        self.model = model
        label = model or "record"
        if record_id is not None:
            label = f"{label} {record_id}"
        super().__init__(f"Malformed {label}: {reason}")


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        field = ".".join(str(x) for x in item["loc"]) or "<root>"
        parts.append(f"{field}: {item['msg']}")
    return "; ".join(parts)


def parse_record(model: Type[T], payload: Any) -> T:
    """
    Validate a single backend payload into ``model``.

    Raises:
        MalformedRecordError: If the payload is not an object, lacks a
            required field, or carries an invalid value.
    """
    if not isinstance(payload, dict):
        raise MalformedRecordError(
            f"expected an object, got {type(payload).__name__}",
            model=model.__name__,
        )

    record_id = payload.get("id")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise MalformedRecordError(
            _describe(e),
            record_id=str(record_id) if record_id is not None else None,
            model=model.__name__,
        ) from e


def parse_records(model: Type[T], payloads: Any) -> list[T]:
    """
    Validate a list of backend payloads, dropping malformed entries.

    Raises:
        MalformedRecordError: If ``payloads`` itself is not a list.
    """
    if not isinstance(payloads, list):
        raise MalformedRecordError(
            f"expected a list, got {type(payloads).__name__}",
            model=model.__name__,
        )

    records: list[T] = []
    for index, payload in enumerate(payloads):
        try:
            records.append(parse_record(model, payload))
        except MalformedRecordError as e:
            logger.warning(f"Skipping {model.__name__} at index {index}: {e}")
    return records

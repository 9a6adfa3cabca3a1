"""
Error registry management for loading and accessing error definitions.

This module loads the packaged error_registry.yaml file and provides
utilities to access error definitions by code.
"""

import yaml
from pathlib import Path
from typing import Dict, Optional

from trainingdesk_types.errors import ErrorDefinition, ErrorMessageFormat

REGISTRY_PATH = Path(__file__).parent / "error_registry.yaml"

# Cache for error registry
_error_registry: Optional[Dict[str, ErrorDefinition]] = None


def load_error_registry(path: Path = REGISTRY_PATH) -> Dict[str, ErrorDefinition]:
    """
    Load error registry from YAML file.

    Returns:
        Dictionary mapping error codes to ErrorDefinition objects

    Raises:
        FileNotFoundError: If the registry file is missing
        ValueError: If YAML is malformed or validation fails
    """
    global _error_registry

    if path == REGISTRY_PATH and _error_registry is not None:
        return _error_registry

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data or "errors" not in data:
        raise ValueError("Invalid error registry format: missing 'errors' key")

    registry = {}
    for error_dict in data["errors"]:
        try:
            message_data = error_dict.get("message", {})
            error_def = ErrorDefinition(
                code=error_dict["code"],
                http_status=error_dict["http_status"],
                category=error_dict["category"],
                severity=error_dict["severity"],
                title=error_dict["title"],
                message=ErrorMessageFormat(
                    plain=message_data.get("plain", ""),
                    markdown=message_data.get("markdown"),
                ),
                retry_after=error_dict.get("retry_after"),
                internal_description=error_dict.get("internal_description", ""),
                common_causes=error_dict.get("common_causes", []),
            )
        except Exception as e:
            raise ValueError(
                f"Failed to parse error definition for {error_dict.get('code', 'unknown')}: {e}"
            ) from e

        if error_def.code in registry:
            raise ValueError(f"Duplicate error code in registry: {error_def.code}")
        registry[error_def.code] = error_def

    if path == REGISTRY_PATH:
        _error_registry = registry
    return registry


def get_error_definition(error_code: str) -> ErrorDefinition:
    """
    Get error definition by code.

    Unknown codes resolve to a generic internal error instead of failing.
    """
    registry = load_error_registry()

    if error_code not in registry:
        return ErrorDefinition(
            code="UNKNOWN",
            http_status=500,
            category="internal",
            severity="error",
            title="UnknownError",
            message=ErrorMessageFormat(
                plain=f"An error occurred (code: {error_code})",
            ),
            internal_description=f"Unknown error code: {error_code}",
        )

    return registry[error_code]


def get_all_error_codes() -> list[str]:
    return list(load_error_registry().keys())

"""
Derived record fields.

Risk level and masked email are never stored; both are recomputed from the
source fields whenever a record is read.
"""

from enum import Enum
from typing import Optional

HIGH_RISK_RATIO = 0.85
MEDIUM_RISK_RATIO = 0.65


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def risk_level(enrolled: int, capacity: int) -> RiskLevel:
    """
    Classify enrollment pressure from the enrolled/capacity ratio.

    A capacity of zero (or less) counts as fully booked. Ratios above 1.0
    are passed through unclamped and therefore classify as high.
    """
    if capacity <= 0:
        return RiskLevel.HIGH

    ratio = enrolled / capacity
    if ratio >= HIGH_RISK_RATIO:
        return RiskLevel.HIGH
    if ratio >= MEDIUM_RISK_RATIO:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def utilization_percent(enrolled: int, capacity: int) -> Optional[int]:
    if capacity <= 0:
        return None
    return round(enrolled / capacity * 100)


def mask_email(email: Optional[str]) -> str:
    """
    Mask the local part of an email address.

    Examples:
        >>> mask_email("ab@x.com")
        'ab***@x.com'
        >>> mask_email("jane.doe@example.com")
        'ja***@example.com'

    Only ever call this with the raw address; masking output again is not
    meaningful.
    """
    if not email:
        return ""

    local, at, domain = email.partition("@")
    if not at:
        return f"{local[:2]}***"

    if len(local) <= 2:
        return f"{local}***@{domain}"
    return f"{local[:2]}***@{domain}"

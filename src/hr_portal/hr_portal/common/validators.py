from __future__ import annotations

import math
from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def to_amount(value, default: float = 0.0) -> float:
    """Lenient number parsing for payroll forms: missing or non-numeric -> default."""
    if value is None:
        return default
    try:
        amount = float(str(value).strip() or default)
    except ValueError:
        return default
    return amount if math.isfinite(amount) else default


def require_positive_amount(value, field_name: str) -> float:
    try:
        amount = float(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(amount):
        raise ValidationError(f"{field_name} must be a number")
    if amount <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    return amount


def optional_float(value) -> Optional[float]:
    if value is None or str(value).strip() == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid number: {value!r}")
    if not math.isfinite(number):
        raise ValidationError(f"Invalid number: {value!r}")
    return number


def require_int(value, field_name: str) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid")

from __future__ import annotations

import math
from typing import Any, Optional, Type, TypeVar

from ..core.exceptions import ValidationError


def optional_text(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def require_positive_id(value: Any, field_name: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid")
    if n <= 0:
        raise ValidationError(f"{field_name} is invalid")
    return n


def validate_coordinates(latitude: Any, longitude: Any) -> tuple[float, float]:
    """Return (lat, lng) as floats or raise when missing, non-finite or out of range."""

    if latitude is None or longitude is None:
        raise ValidationError("GPS coordinates are required for onsite attendance")
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError):
        raise ValidationError("GPS coordinates must be numbers")

    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValidationError("GPS coordinates must be finite")
    if not -90.0 <= lat <= 90.0:
        raise ValidationError("Latitude must be between -90 and 90")
    if not -180.0 <= lng <= 180.0:
        raise ValidationError("Longitude must be between -180 and 180")
    return lat, lng


E = TypeVar("E")


def coerce_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    """Accept an enum member or its (case-insensitive) value."""

    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower() if value is not None else value)
    except ValueError:
        raise ValidationError(f"{field_name} is invalid")

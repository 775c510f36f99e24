"""Common helpers for the plant service layer.

This module provides reusable utilities for:
- UUID handling
- Coordinate validation
- Enum validation
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Sequence

from fiberplant.errors import ValidationError


def coerce_uuid(value):
    """Convert value to UUID, returning None if value is None.

    Raises:
        ValidationError: if value is not a valid UUID
    """
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid id: {value}") from exc


def validate_enum(value, enum_cls, label: str):
    """Validate and convert a value to an enum member.

    Args:
        value: Value to validate (can be None)
        enum_cls: Enum class to validate against
        label: Human-readable label for error messages

    Returns:
        Enum member or None if value is None

    Raises:
        ValidationError: if value is not a valid enum member
    """
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {label}") from exc


def validate_location(location: Sequence[float] | None, label: str = "location") -> tuple[float, float]:
    """Return ``(lat, lng)`` as floats or raise if it is not a valid coordinate.

    Args:
        location: Two-item sequence of latitude and longitude in degrees
        label: Human-readable label for error messages

    Raises:
        ValidationError: on wrong shape, non-numeric or out-of-range values
    """
    if location is None or isinstance(location, (str, bytes)) or len(location) != 2:
        raise ValidationError(f"Invalid {label}: expected [latitude, longitude]")
    try:
        lat, lng = float(location[0]), float(location[1])
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {label}: coordinates must be numbers") from exc
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValidationError(f"Invalid {label}: coordinates must be finite")
    if not -90.0 <= lat <= 90.0:
        raise ValidationError(f"Invalid {label}: latitude {lat} out of range")
    if not -180.0 <= lng <= 180.0:
        raise ValidationError(f"Invalid {label}: longitude {lng} out of range")
    return lat, lng


def require_name(name: str | None, label: str) -> str:
    value = (name or "").strip()
    if not value:
        raise ValidationError(f"{label} name is required")
    return value

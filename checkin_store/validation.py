"""
Input validation for check-in submissions.

All checks run before any persistence attempt and raise ValidationError.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from .exceptions import ValidationError

if TYPE_CHECKING:
    from .types import LocationReading

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0


def _check_number(field: str, value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field, "must be a number", repr(value))
    if not math.isfinite(value):
        raise ValidationError(field, "must be finite", repr(value))
    return float(value)


def validate_coordinates(latitude: object, longitude: object, accuracy: object) -> None:
    """Check latitude, longitude and accuracy against their allowed ranges."""
    lat = _check_number("latitude", latitude)
    if not MIN_LATITUDE <= lat <= MAX_LATITUDE:
        raise ValidationError("latitude", "must be between -90 and 90", str(lat))

    lng = _check_number("longitude", longitude)
    if not MIN_LONGITUDE <= lng <= MAX_LONGITUDE:
        raise ValidationError("longitude", "must be between -180 and 180", str(lng))

    acc = _check_number("accuracy", accuracy)
    if acc < 0:
        raise ValidationError("accuracy", "must not be negative", str(acc))


def validate_location(location: LocationReading) -> None:
    """Validate a captured location reading."""
    validate_coordinates(location.latitude, location.longitude, location.accuracy)


def validate_user_code(user_code: object, min_length: int = 1) -> str:
    """Validate the opaque user code handed over by the sign-in gate.

    Args:
        user_code: Code entered by the user
        min_length: Minimum length after stripping whitespace

    Returns:
        The code, unchanged
    """
    if not isinstance(user_code, str) or not user_code.strip():
        raise ValidationError("user_code", "must be a non-empty string")
    if len(user_code.strip()) < min_length:
        raise ValidationError("user_code", f"must be at least {min_length} characters")
    return user_code


def validate_submission_id(submission_id: object) -> str:
    if not isinstance(submission_id, str) or not submission_id.strip():
        raise ValidationError("submission_id", "must be a non-empty string")
    return submission_id


def validate_image(data: object, max_bytes: int | None = None) -> bytes:
    """Validate an already-encoded image payload."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise ValidationError("image", f"must be bytes, got {type(data).__name__}")
    payload = bytes(data)
    if not payload:
        raise ValidationError("image", "must not be empty")
    if max_bytes is not None and len(payload) > max_bytes:
        raise ValidationError("image", f"exceeds {max_bytes} bytes", str(len(payload)))
    return payload

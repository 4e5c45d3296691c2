"""
Capture collaborator interfaces.

The camera and geolocation front ends live outside this library. They
are modelled only as producers of an image payload and a location
reading. Location acquisition is the one operation with a bounded wait.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from .exceptions import LocationTimeoutError
from .types import LocationReading

logger = logging.getLogger(__name__)

# Matches the browser geolocation request the field app issued
DEFAULT_LOCATION_TIMEOUT = 15.0


class ImageSource(ABC):
    """Produces an already-encoded image (e.g. JPEG bytes)."""

    @abstractmethod
    async def capture_image(self) -> bytes:
        ...


class LocationSource(ABC):
    """Produces one location reading.

    Implementations raise PermissionDeniedError or PositionUnavailableError
    when the platform reports those conditions.
    """

    @abstractmethod
    async def get_location(self) -> LocationReading:
        ...


async def acquire_location(
    source: LocationSource,
    timeout: float = DEFAULT_LOCATION_TIMEOUT,
) -> LocationReading:
    """Get a validated location reading, failing fast after ``timeout`` seconds.

    Raises:
        LocationTimeoutError: If the source does not answer in time
        PermissionDeniedError, PositionUnavailableError: Passed through unchanged
        ValidationError: If the reading is out of range
    """
    try:
        reading = await asyncio.wait_for(source.get_location(), timeout=timeout)
    except TimeoutError as e:
        logger.warning(f"Location request timed out after {timeout}s")
        raise LocationTimeoutError(timeout) from e

    reading.validate()
    return reading

"""
Shared test configuration and fixtures.

Every test gets its own temporary store directory; nothing touches
the user's real ~/.checkin_store.
"""

import os
import tempfile
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest

from checkin_store import LocalCheckinStore, LocationReading, StoreConfig


def make_jpeg(size: int) -> bytes:
    """Bytes shaped like a JPEG (SOI marker, filler, EOI marker)."""
    body = os.urandom(max(size - 4, 0))
    return b"\xff\xd8" + body + b"\xff\xd9"


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_dir: Path) -> StoreConfig:
    return StoreConfig(local_path=temp_dir)


@pytest.fixture
async def store(config: StoreConfig) -> AsyncIterator[LocalCheckinStore]:
    """Create a local store instance for tests."""
    store = LocalCheckinStore(config)
    yield store
    await store.close()


@pytest.fixture
def location() -> LocationReading:
    return LocationReading(latitude=40.7128, longitude=-74.0060, accuracy=5)


@pytest.fixture
def jpeg() -> bytes:
    return make_jpeg(2048)


@pytest.fixture
def jpeg_factory():
    """Build JPEG-shaped payloads of a given size."""
    return make_jpeg

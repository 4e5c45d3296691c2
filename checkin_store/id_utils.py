"""ID generation and parsing utilities for the check-in store.

Centralizes the ID format knowledge so callers never need to
construct or parse IDs directly.

Blob IDs: img_{epoch_ms}_{suffix}
Record IDs: checkin_{epoch_ms}_{suffix}
Submission IDs: VER-{base36 epoch_ms}-{suffix}

Suffixes are random lowercase base36 strings; submission IDs are upper-cased
so they can be read back over the phone.
"""

from __future__ import annotations

import re
import secrets
import time
from datetime import UTC, datetime

BLOB_PREFIX = "img"
RECORD_PREFIX = "checkin"
SUBMISSION_PREFIX = "VER"

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_ID_PATTERN = re.compile(r"^(?P<prefix>[a-z]+)_(?P<ms>\d+)_(?P<suffix>[0-9a-z]+)$")


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def generate_id(prefix: str) -> str:
    """Generate a store ID from the current time plus a random suffix."""
    return f"{prefix}_{_now_ms()}_{_random_suffix(9)}"


def blob_id() -> str:
    """Generate a blob ID."""
    return generate_id(BLOB_PREFIX)


def record_id() -> str:
    """Generate a check-in record ID."""
    return generate_id(RECORD_PREFIX)


def generate_submission_id() -> str:
    """Generate a human-correlatable submission token, e.g. ``VER-MGX3K2A1-7QZ0B``."""
    return f"{SUBMISSION_PREFIX}-{_base36(_now_ms())}-{_random_suffix(5)}".upper()


def parse_id_timestamp(store_id: str) -> datetime:
    """Extract the creation time embedded in a store ID.

    Raises ValueError on malformed input.
    """
    match = _ID_PATTERN.match(store_id)
    if match is None:
        raise ValueError(f"Malformed store ID: {store_id}")
    return datetime.fromtimestamp(int(match.group("ms")) / 1000, tz=UTC)


def is_valid_blob_id(value: str) -> bool:
    """Check that a blob ID is well-formed and safe to use as a file name."""
    match = _ID_PATTERN.match(value)
    return match is not None and match.group("prefix") == BLOB_PREFIX

"""
Record types for the check-in store.

Location readings and check-in records are immutable once created.
Snapshots, stats and sync results are derived values that are never
persisted by the store itself.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .validation import validate_coordinates


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string or epoch milliseconds into an aware datetime.

    Naive values are taken to be UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = datetime.fromtimestamp(value / 1000, tz=UTC)
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise ValueError(f"Unsupported timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True)
class LocationReading:
    """A GPS fix as handed over by the geolocation collaborator.

    Attributes:
        latitude: Degrees, -90..90
        longitude: Degrees, -180..180
        accuracy: Radius of uncertainty in meters
        captured_at: When the fix was taken
    """

    latitude: float
    longitude: float
    accuracy: float
    captured_at: datetime = field(default_factory=utc_now)

    def validate(self) -> None:
        """Raise ValidationError if any field is out of range."""
        validate_coordinates(self.latitude, self.longitude, self.accuracy)

    def to_dict(self) -> dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "captured_at": self.captured_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LocationReading:
        # Older exports used "timestamp" in epoch milliseconds
        captured = data.get("captured_at", data.get("timestamp"))
        return cls(
            latitude=data["latitude"],
            longitude=data["longitude"],
            accuracy=data["accuracy"],
            captured_at=parse_timestamp(captured) if captured is not None else utc_now(),
        )


@dataclass(frozen=True)
class CheckinRecord:
    """One submission's metadata.

    ``blob_id`` is a reference, not ownership: the blob's lifetime is
    independent of the record and a dangling reference is reported as
    BlobNotFoundError on read.
    """

    id: str
    user_code: str
    created_at: datetime
    location: LocationReading
    blob_id: str
    submission_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_code": self.user_code,
            "created_at": self.created_at.isoformat(),
            "location": self.location.to_dict(),
            "blob_id": self.blob_id,
            "submission_id": self.submission_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckinRecord:
        return cls(
            id=data["id"],
            user_code=data["user_code"],
            created_at=parse_timestamp(data["created_at"]),
            location=LocationReading.from_dict(data["location"]),
            blob_id=data["blob_id"],
            submission_id=data["submission_id"],
        )


@dataclass
class StoreSnapshot:
    """Portable copy of the whole local store.

    ``blobs_by_id`` maps blob IDs to text-safe (data URL) encodings.
    """

    records: list[CheckinRecord]
    blobs_by_id: dict[str, str]
    exported_at: datetime = field(default_factory=utc_now)

    @property
    def is_complete(self) -> bool:
        return all(r.blob_id in self.blobs_by_id for r in self.records)

    def to_dict(self) -> dict[str, Any]:
        return {
            "exported_at": self.exported_at.isoformat(),
            "records": [r.to_dict() for r in self.records],
            "blobsById": dict(self.blobs_by_id),
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass(frozen=True)
class StorageStats:
    """Counts and approximate footprint of the local store."""

    total_checkins: int
    total_images: int
    storage_size_bytes: int

    @property
    def storage_size(self) -> str:
        """Human-readable estimate, e.g. ``"1.5 MB"``."""
        from .stats import format_size

        return format_size(self.storage_size_bytes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_checkins": self.total_checkins,
            "total_images": self.total_images,
            "storage_size_bytes": self.storage_size_bytes,
            "storage_size": self.storage_size,
        }


@dataclass(frozen=True)
class RemoteCheckin:
    """A check-in as stored by a remote sync backend."""

    remote_id: str
    user_code: str
    submission_id: str
    latitude: float
    longitude: float
    accuracy: float
    image_locator: str | None
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.remote_id,
            "user_code": self.user_code,
            "submission_id": self.submission_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "image_url": self.image_locator,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RemoteCheckin:
        """Build from a backend document, accepting snake_case or camelCase keys.

        Raises:
            ValueError: If the document is not a mapping or has no coordinates
        """
        if not isinstance(data, dict):
            raise ValueError(f"Remote check-in must be an object, got {type(data).__name__}")

        location = data.get("location")
        if location is None:
            location = {}
        elif not isinstance(location, dict):
            raise ValueError(f"Remote check-in location must be an object: {location!r}")

        coords: dict[str, Any] = {}
        for key in ("latitude", "longitude"):
            value = data.get(key, location.get(key))
            if value is None:
                raise ValueError(f"Remote check-in has no {key}")
            coords[key] = value

        created = data.get("created_at", data.get("createdAt", data.get("timestamp")))
        return cls(
            remote_id=str(data.get("id", data.get("remote_id", ""))),
            user_code=data.get("user_code", data.get("userCode", "")),
            submission_id=data.get("submission_id", data.get("submissionId", "")),
            latitude=coords["latitude"],
            longitude=coords["longitude"],
            accuracy=data.get("accuracy", location.get("accuracy")) or 0.0,
            image_locator=data.get("image_url", data.get("imageUrl")),
            created_at=parse_timestamp(created) if created is not None else utc_now(),
        )


@dataclass(frozen=True)
class RemoteStats:
    """Aggregates over a remote backend's check-ins."""

    total: int
    unique_users: int
    today_count: int
    last_7_days_count: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "unique_users": self.unique_users,
            "today_count": self.today_count,
            "last_7_days_count": self.last_7_days_count,
        }


class SyncState(Enum):
    """Remote mirror outcome for one submission."""

    SYNCED = "synced"  # Uploaded and inserted remotely
    NOT_SYNCED = "not_synced"  # Stored locally, remote attempt failed or unreachable
    SKIPPED = "skipped"  # No remote adapter configured


@dataclass
class SyncResult:
    """Outcome of a submission: always a committed local record."""

    record: CheckinRecord
    state: SyncState
    remote_id: str | None = None
    locator: str | None = None
    error: str | None = None

    @property
    def synced(self) -> bool:
        return self.state == SyncState.SYNCED

    @property
    def local_id(self) -> str:
        return self.record.id

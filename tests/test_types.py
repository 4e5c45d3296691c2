"""Tests for record types and input validation."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from checkin_store import (
    CheckinRecord,
    LocationReading,
    RemoteCheckin,
    StorageStats,
    StoreSnapshot,
    SyncResult,
    SyncState,
    ValidationError,
)
from checkin_store.validation import validate_image, validate_user_code


class TestLocationReading:
    def test_valid(self) -> None:
        LocationReading(latitude=51.5, longitude=-0.12, accuracy=12.5).validate()

    def test_non_numeric_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            LocationReading(latitude="51.5", longitude=0, accuracy=1).validate()  # type: ignore[arg-type]
        assert exc_info.value.field == "latitude"

    def test_infinite_accuracy_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LocationReading(latitude=0, longitude=0, accuracy=float("inf")).validate()

    def test_is_immutable(self) -> None:
        reading = LocationReading(latitude=0, longitude=0, accuracy=1)
        with pytest.raises(AttributeError):
            reading.latitude = 1  # type: ignore[misc]

    def test_from_dict_accepts_epoch_millis(self) -> None:
        """Exports from the browser app stored capture time as epoch ms."""
        reading = LocationReading.from_dict(
            {"latitude": 1.0, "longitude": 2.0, "accuracy": 3.0, "timestamp": 1700000000000}
        )
        assert reading.captured_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)

    def test_dict_roundtrip(self) -> None:
        reading = LocationReading(
            latitude=40.7128,
            longitude=-74.006,
            accuracy=5.0,
            captured_at=datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
        )
        assert LocationReading.from_dict(reading.to_dict()) == reading


class TestCheckinRecord:
    def test_naive_timestamps_taken_as_utc(self) -> None:
        record = CheckinRecord.from_dict(
            {
                "id": "checkin_1_a",
                "user_code": "FIELD_01",
                "created_at": "2024-05-01T12:00:00",
                "location": {
                    "latitude": 1.0,
                    "longitude": 2.0,
                    "accuracy": 3.0,
                    "captured_at": "2024-05-01T11:59:58Z",
                },
                "blob_id": "img_1_a",
                "submission_id": "VER-1",
            }
        )
        assert record.created_at.tzinfo is not None
        assert record.location.captured_at == datetime(2024, 5, 1, 11, 59, 58, tzinfo=UTC)


class TestStoreSnapshot:
    def test_incomplete_when_blob_missing(self) -> None:
        reading = LocationReading(latitude=0, longitude=0, accuracy=1)
        record = CheckinRecord(
            id="checkin_1_a",
            user_code="FIELD_01",
            created_at=datetime.now(UTC),
            location=reading,
            blob_id="img_1_a",
            submission_id="VER-1",
        )

        assert not StoreSnapshot(records=[record], blobs_by_id={}).is_complete
        assert StoreSnapshot(records=[record], blobs_by_id={"img_1_a": "x"}).is_complete


class TestStorageStats:
    def test_to_dict(self) -> None:
        stats = StorageStats(total_checkins=2, total_images=3, storage_size_bytes=2048)
        assert stats.to_dict() == {
            "total_checkins": 2,
            "total_images": 3,
            "storage_size_bytes": 2048,
            "storage_size": "2.0 KB",
        }


class TestRemoteCheckin:
    def test_from_camel_case_document(self) -> None:
        remote = RemoteCheckin.from_dict(
            {
                "id": 42,
                "userCode": "FIELD_01",
                "submissionId": "VER-1",
                "location": {"latitude": 1.0, "longitude": 2.0, "accuracy": 3.0},
                "imageUrl": "https://img/1.jpg",
                "timestamp": 1700000000000,
            }
        )
        assert remote.remote_id == "42"
        assert remote.user_code == "FIELD_01"
        assert remote.latitude == 1.0
        assert remote.image_locator == "https://img/1.jpg"

    def test_from_snake_case_document(self) -> None:
        remote = RemoteCheckin.from_dict(
            {
                "id": "abc",
                "user_code": "FIELD_02",
                "submission_id": "VER-2",
                "latitude": 1.0,
                "longitude": 2.0,
                "accuracy": 3.0,
                "image_url": None,
                "created_at": "2024-05-01T12:00:00+00:00",
            }
        )
        assert remote.user_code == "FIELD_02"
        assert remote.created_at == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

    @pytest.mark.parametrize(
        "document",
        [
            "junk",
            None,
            {"id": "1", "userCode": "A", "location": None},
            {"id": "1", "userCode": "A", "location": [1.0, 2.0]},
            {"id": "1", "userCode": "A", "latitude": 1.0},
        ],
    )
    def test_malformed_document_rejected(self, document) -> None:
        with pytest.raises(ValueError):
            RemoteCheckin.from_dict(document)

    def test_missing_accuracy_defaults_to_zero(self) -> None:
        remote = RemoteCheckin.from_dict({"id": "1", "latitude": 1.0, "longitude": 2.0})
        assert remote.accuracy == 0.0


class TestSyncResult:
    def test_synced_property(self) -> None:
        record = CheckinRecord(
            id="checkin_1_a",
            user_code="FIELD_01",
            created_at=datetime.now(UTC),
            location=LocationReading(latitude=0, longitude=0, accuracy=1),
            blob_id="img_1_a",
            submission_id="VER-1",
        )
        assert SyncResult(record=record, state=SyncState.SYNCED).synced
        assert not SyncResult(record=record, state=SyncState.NOT_SYNCED).synced
        assert SyncResult(record=record, state=SyncState.SKIPPED).local_id == "checkin_1_a"


class TestValidation:
    def test_user_code_min_length(self) -> None:
        assert validate_user_code("ABCD", min_length=4) == "ABCD"
        with pytest.raises(ValidationError):
            validate_user_code("ABC", min_length=4)

    def test_user_code_must_be_string(self) -> None:
        with pytest.raises(ValidationError):
            validate_user_code(None)

    def test_image_accepts_bytearray(self) -> None:
        assert validate_image(bytearray(b"abc")) == b"abc"

    def test_image_type_and_size(self) -> None:
        with pytest.raises(ValidationError):
            validate_image("not bytes")
        with pytest.raises(ValidationError):
            validate_image(b"abcdef", max_bytes=3)

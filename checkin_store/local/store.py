"""
Local check-in store.

Combines the blob store (image payloads) and the metadata index
(structured records) into one explicitly constructed object. The
application's entry point owns its lifecycle and injects it wherever
it is needed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import StoreConfig
from ..exceptions import (
    CheckinStoreError,
    DuplicateSubmissionError,
    StorageError,
    ValidationError,
)
from ..logging_utils import StoreLoggerAdapter
from ..stats import compute_storage_stats
from ..types import CheckinRecord, LocationReading, StorageStats, StoreSnapshot
from ..validation import (
    validate_image,
    validate_location,
    validate_submission_id,
    validate_user_code,
)
from .blob_store import BlobStore
from .metadata_index import MetadataIndex

logger = logging.getLogger(__name__)


class LocalCheckinStore:
    """Durable on-device store for check-ins.

    Directory structure:
    {local_path}/
      checkins.jsonl
      blobs/
        {blob_id}.bin

    Correctness assumes one submission in flight at a time per store;
    there is no lock around the blob write and index append.
    """

    def __init__(self, config: StoreConfig | None = None) -> None:
        """Initialize local storage.

        Args:
            config: Store configuration (defaults to StoreConfig())
        """
        self.config = config or StoreConfig()
        self.base_path = Path(self.config.local_path)
        self.blobs = BlobStore(self.base_path, max_bytes=self.config.max_blob_bytes)
        self.index = MetadataIndex(self.base_path)

    async def __aenter__(self) -> LocalCheckinStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def store_complete_checkin(
        self,
        user_code: str,
        location: LocationReading,
        image: bytes,
        submission_id: str,
    ) -> CheckinRecord:
        """Persist one check-in: one blob write, then one index append.

        Args:
            user_code: Opaque code from the sign-in gate
            location: Validated GPS reading
            image: Encoded image bytes
            submission_id: Caller-generated correlation token

        Returns:
            The persisted record

        Raises:
            ValidationError: Before anything is written, for bad input
            StorageError: If either write fails; the original fault is the cause

        If the blob write succeeds and the index append fails, the blob is
        left orphaned. It is counted by ``get_stats`` but referenced by no record.
        """
        validate_user_code(user_code, self.config.min_user_code_length)
        validate_location(location)
        payload = validate_image(image)
        validate_submission_id(submission_id)

        log = StoreLoggerAdapter(logger, {"submission_id": submission_id})

        try:
            if self.config.enforce_unique_submission_ids:
                if submission_id in await self.index.submission_ids():
                    raise DuplicateSubmissionError(submission_id)

            blob_id = await self.blobs.put(payload)
        except ValidationError:
            raise
        except Exception as e:
            log.error(f"Failed to store image: {e}")
            raise StorageError("store_image", cause=e) from e

        try:
            record = await self.index.append(
                user_code=user_code,
                location=location,
                blob_id=blob_id,
                submission_id=submission_id,
            )
        except Exception as e:
            log.error(f"Failed to index check-in, blob {blob_id} is orphaned: {e}")
            raise StorageError("store_checkin", cause=e) from e

        log.info(f"Stored check-in {record.id} ({len(payload)} bytes)")
        return record

    async def get_checkin(self, record_id: str) -> CheckinRecord:
        """Get one record by ID (RecordNotFoundError if missing)."""
        return await self.index.get(record_id)

    async def get_image(self, blob_id: str) -> bytes:
        """Get image bytes by blob ID (BlobNotFoundError if missing)."""
        return await self.blobs.get(blob_id)

    async def list_checkins(
        self,
        user_code: str | None = None,
        newest_first: bool = False,
    ) -> list[CheckinRecord]:
        """List records, in insertion order unless ``newest_first``."""
        records = await self.index.list()
        if user_code is not None:
            records = [r for r in records if r.user_code == user_code]
        if newest_first:
            records.reverse()
        return records

    async def find_orphaned_blobs(self) -> list[str]:
        """Blob IDs that no record references."""
        referenced = {r.blob_id for r in await self.index.list()}
        return [b for b in await self.blobs.list_ids() if b not in referenced]

    async def export_snapshot(self) -> StoreSnapshot:
        """Snapshot of every record and its image (BlobNotFoundError on a dangling reference)."""
        # export imports local.file_ops, so it is loaded on first use
        from ..export import export_snapshot

        return await export_snapshot(self.index, self.blobs)

    async def get_stats(self) -> StorageStats:
        return await compute_storage_stats(
            self.index,
            self.blobs,
            per_image_estimate=self.config.per_image_estimate_bytes,
        )

    async def clear_all_data(self) -> None:
        """Remove every record and every blob."""
        try:
            await self.index.clear()
            await self.blobs.clear()
        except CheckinStoreError as e:
            raise StorageError("clear", cause=e) from e
        logger.info(f"Cleared local check-in store at {self.base_path}")

    async def close(self) -> None:
        """Close storage (no-op for local storage)."""
        pass

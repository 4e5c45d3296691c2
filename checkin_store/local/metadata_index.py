"""
Durable metadata index of check-in records.

Records are appended to a JSONL file, one record per line, so the
index survives process restarts and keeps insertion order:

{root}/
  checkins.jsonl

Records are never updated in place. ``clear`` empties the index.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from .. import id_utils
from ..exceptions import RecordNotFoundError, StorageIOError
from ..types import CheckinRecord, LocationReading, utc_now
from .file_ops import append_jsonl, iter_jsonl, remove_file

logger = logging.getLogger(__name__)

INDEX_FILENAME = "checkins.jsonl"


class MetadataIndex:
    """Append-only, insertion-ordered index of CheckinRecord."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.path = self.root / INDEX_FILENAME

    async def append(
        self,
        user_code: str,
        location: LocationReading,
        blob_id: str,
        submission_id: str,
        created_at: datetime | None = None,
    ) -> CheckinRecord:
        """Append a record, assigning its ID.

        Returns:
            The record as persisted
        """
        record = CheckinRecord(
            id=id_utils.record_id(),
            user_code=user_code,
            created_at=created_at or utc_now(),
            location=location,
            blob_id=blob_id,
            submission_id=submission_id,
        )
        await append_jsonl(self.path, record.to_dict())
        logger.debug(f"Indexed check-in {record.id} -> blob {blob_id}")
        return record

    async def list(self) -> list[CheckinRecord]:
        """All records in insertion order."""
        records: list[CheckinRecord] = []
        async for line_number, data in iter_jsonl(self.path):
            try:
                records.append(CheckinRecord.from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                raise StorageIOError(
                    f"parse_record(line {line_number})", str(self.path), e
                ) from e
        return records

    async def get(self, record_id: str) -> CheckinRecord:
        """Look up one record by ID.

        Raises:
            RecordNotFoundError: If no record has this ID
        """
        for record in await self.list():
            if record.id == record_id:
                return record
        raise RecordNotFoundError(record_id)

    async def count(self) -> int:
        return sum([1 async for _ in iter_jsonl(self.path)])

    async def submission_ids(self) -> set[str]:
        return {r.submission_id for r in await self.list()}

    async def size_bytes(self) -> int:
        """Size of the serialized metadata.

        Measured as a single JSON array of all records, the form the
        metadata takes in an export.
        """
        if not self.path.exists():
            return 0
        records = [r.to_dict() for r in await self.list()]
        return len(json.dumps(records).encode("utf-8"))

    async def clear(self) -> None:
        await remove_file(self.path)
        logger.info(f"Cleared metadata index at {self.path}")

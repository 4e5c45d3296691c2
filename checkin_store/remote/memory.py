"""
In-memory remote sync adapter.

Reference implementation of the RemoteSyncAdapter contract. Useful for
tests and offline demos; failures can be injected to simulate an
unreachable or misbehaving backend.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from ..exceptions import RemoteSyncError, StorageConnectionError
from ..stats import compute_remote_stats
from ..types import LocationReading, RemoteCheckin, RemoteStats, utc_now
from .base import RemoteSyncAdapter

logger = logging.getLogger(__name__)


@dataclass
class _StoredImage:
    correlation_id: str
    data: bytes


class InMemorySyncAdapter(RemoteSyncAdapter):
    """Remote backend held entirely in process memory.

    Attributes:
        reachable: When False, health_check fails and every call raises
            StorageConnectionError
        fail_uploads: When True, upload_blob raises RemoteSyncError
        fail_inserts: When True, insert_record raises RemoteSyncError
    """

    name = "memory"

    def __init__(self, reachable: bool = True) -> None:
        self.reachable = reachable
        self.fail_uploads = False
        self.fail_inserts = False
        self.images: dict[str, _StoredImage] = {}
        self.records: list[RemoteCheckin] = []
        self._next_id = 1

    def _check_reachable(self, operation: str) -> None:
        if not self.reachable:
            raise StorageConnectionError(self.name, f"memory://{operation}")

    async def upload_blob(self, data: bytes, correlation_id: str) -> str:
        self._check_reachable("upload_blob")
        if self.fail_uploads:
            raise RemoteSyncError(self.name, "upload_blob")

        locator = f"memory://images/{correlation_id}.jpg"
        self.images[locator] = _StoredImage(correlation_id=correlation_id, data=bytes(data))
        return locator

    async def insert_record(
        self,
        user_code: str,
        submission_id: str,
        location: LocationReading,
        locator: str | None,
        created_at: datetime | None = None,
    ) -> str:
        self._check_reachable("insert_record")
        if self.fail_inserts:
            raise RemoteSyncError(self.name, "insert_record")

        remote_id = f"mem-{self._next_id}"
        self._next_id += 1
        self.records.append(
            RemoteCheckin(
                remote_id=remote_id,
                user_code=user_code,
                submission_id=submission_id,
                latitude=location.latitude,
                longitude=location.longitude,
                accuracy=location.accuracy,
                image_locator=locator,
                created_at=created_at or utc_now(),
            )
        )
        logger.debug(f"Inserted remote check-in {remote_id} for {submission_id}")
        return remote_id

    async def list_all(self) -> list[RemoteCheckin]:
        self._check_reachable("list_all")
        return sorted(self.records, key=lambda r: r.created_at, reverse=True)

    async def list_by_user(self, user_code: str) -> list[RemoteCheckin]:
        return [r for r in await self.list_all() if r.user_code == user_code]

    async def compute_stats(self) -> RemoteStats:
        return compute_remote_stats(await self.list_all())

    async def get_image(self, locator: str) -> bytes:
        self._check_reachable("get_image")
        stored = self.images.get(locator)
        if stored is None:
            raise RemoteSyncError(self.name, "get_image", message=f"No image at {locator}")
        return stored.data

    async def health_check(self) -> bool:
        return self.reachable

"""
Local blob store for captured images.

Blobs are opaque, write-once byte payloads stored one file per blob:

{root}/
  blobs/
    img_{epoch_ms}_{suffix}.bin

There is no update or single-delete; ``clear`` removes every blob.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .. import id_utils
from ..exceptions import BlobNotFoundError, StorageFullError
from .file_ops import (
    ensure_directory,
    file_size,
    list_files,
    read_bytes,
    remove_directory,
    write_bytes_atomic,
)

logger = logging.getLogger(__name__)

BLOB_SUFFIX = ".bin"


class BlobStore:
    """Append-only file store for binary payloads keyed by generated IDs."""

    def __init__(self, root: Path, max_bytes: int | None = None) -> None:
        """Initialize the blob store.

        Args:
            root: Store root directory; blobs go under ``root/blobs``
            max_bytes: Optional quota across all blobs
        """
        self.root = Path(root)
        self.blob_dir = self.root / "blobs"
        self.max_bytes = max_bytes

    def _blob_path(self, blob_id: str) -> Path:
        return self.blob_dir / f"{blob_id}{BLOB_SUFFIX}"

    async def put(self, data: bytes) -> str:
        """Persist a payload and return its new blob ID.

        Raises:
            StorageFullError: If the quota would be exceeded
            StorageIOError: If the write fails
        """
        if self.max_bytes is not None:
            used = await self.total_bytes()
            if used + len(data) > self.max_bytes:
                raise StorageFullError(len(data), used, self.max_bytes)

        await ensure_directory(self.blob_dir)

        # IDs carry a random suffix; regenerate on the unlikely same-ms collision
        blob_id = id_utils.blob_id()
        while await self.exists(blob_id):
            blob_id = id_utils.blob_id()

        await write_bytes_atomic(self._blob_path(blob_id), data)
        logger.debug(f"Stored blob {blob_id} ({len(data)} bytes)")
        return blob_id

    async def get(self, blob_id: str) -> bytes:
        """Read a payload by ID.

        Raises:
            BlobNotFoundError: If no blob has this ID
        """
        if not id_utils.is_valid_blob_id(blob_id):
            raise BlobNotFoundError(blob_id)

        data = await read_bytes(self._blob_path(blob_id))
        if data is None:
            raise BlobNotFoundError(blob_id)
        return data

    async def exists(self, blob_id: str) -> bool:
        if not id_utils.is_valid_blob_id(blob_id):
            return False
        return self._blob_path(blob_id).exists()

    async def list_ids(self) -> list[str]:
        files = await list_files(self.blob_dir, BLOB_SUFFIX)
        return [f.name[: -len(BLOB_SUFFIX)] for f in files]

    async def count(self) -> int:
        """Number of stored blobs, counted independently of any record index."""
        return len(await self.list_ids())

    async def total_bytes(self) -> int:
        total = 0
        for path in await list_files(self.blob_dir, BLOB_SUFFIX):
            total += await file_size(path)
        return total

    async def clear(self) -> None:
        """Remove all blobs."""
        await remove_directory(self.blob_dir)
        logger.info(f"Cleared blob store at {self.blob_dir}")

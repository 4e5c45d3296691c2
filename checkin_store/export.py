"""
Snapshot export of the local store.

Produces one self-contained document for backup or offline analysis:

    {
      "exported_at": "...",
      "records": [...],
      "blobsById": {"img_...": "data:image/jpeg;base64,..."}
    }

Export is one-directional; there is no restore into a store.
"""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .exceptions import BlobNotFoundError, ValidationError
from .local.file_ops import write_text_atomic
from .types import StoreSnapshot

if TYPE_CHECKING:
    from .local.blob_store import BlobStore
    from .local.metadata_index import MetadataIndex

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "image/jpeg"


def encode_blob_text(data: bytes, media_type: str = DEFAULT_MEDIA_TYPE) -> str:
    """Encode bytes as a base64 data URL."""
    return f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_blob_text(text: str) -> bytes:
    """Recover the bytes of a data URL (or bare base64) produced by an export."""
    payload = text
    if text.startswith("data:"):
        header, sep, payload = text.partition(",")
        if not sep or not header.endswith(";base64"):
            raise ValidationError("blob", "not a base64 data URL")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValidationError("blob", f"invalid base64: {e}") from e


async def export_snapshot(index: MetadataIndex, blob_store: BlobStore) -> StoreSnapshot:
    """Serialize every record and the blob it references.

    A record whose blob is missing aborts the whole export with
    BlobNotFoundError rather than producing a partial snapshot.
    """
    records = await index.list()
    blobs_by_id: dict[str, str] = {}

    for record in records:
        if record.blob_id in blobs_by_id:
            continue
        try:
            data = await blob_store.get(record.blob_id)
        except BlobNotFoundError as e:
            logger.error(f"Export aborted: check-in {record.id} references missing blob")
            raise BlobNotFoundError(record.blob_id, record.id) from e
        blobs_by_id[record.blob_id] = encode_blob_text(data)

    logger.info(f"Exported {len(records)} check-ins, {len(blobs_by_id)} images")
    return StoreSnapshot(records=records, blobs_by_id=blobs_by_id)


async def write_snapshot(snapshot: StoreSnapshot, path: Path) -> Path:
    """Write a snapshot as JSON, atomically."""
    path = Path(path)
    await write_text_atomic(path, snapshot.to_json())
    return path

"""
Local on-device persistence.

Key classes:
- BlobStore: write-once image payloads, one file per blob
- MetadataIndex: append-only JSONL index of check-in records
- LocalCheckinStore: both of the above behind one submit operation
"""

from .blob_store import BlobStore
from .metadata_index import MetadataIndex
from .store import LocalCheckinStore

__all__ = [
    "BlobStore",
    "MetadataIndex",
    "LocalCheckinStore",
]

"""
Check-in Store

Durable on-device storage for field check-ins (photo + GPS reading)
with best-effort mirroring to a remote backend.

Provides:
- Local blob store and append-only metadata index
- One-call submission that commits locally before anything else
- Portable JSON export and derived storage statistics
- Interchangeable remote sync adapters (in-memory, REST, Cosmos DB)

Usage:

    >>> from checkin_store import LocalCheckinStore, LocationReading, StoreConfig, SyncOrchestrator
    >>> from checkin_store import generate_submission_id
    >>> from checkin_store.remote import create_adapter
    >>> config = StoreConfig.from_environment()
    >>> store = LocalCheckinStore(config)
    >>> async with SyncOrchestrator(store, create_adapter(config)) as orchestrator:
    ...     result = await orchestrator.submit(
    ...         "FIELD_01",
    ...         LocationReading(latitude=40.7128, longitude=-74.0060, accuracy=5),
    ...         jpeg_bytes,
    ...         generate_submission_id(),
    ...     )
    ...     print(result.local_id, result.state)
"""

# Local persistence
from .local import BlobStore, LocalCheckinStore, MetadataIndex

# Capture collaborators
from .capture import ImageSource, LocationSource, acquire_location

# Configuration
from .config import CosmosAuthMethod, StoreConfig, SyncBackend

# Exceptions
from .exceptions import (
    AuthenticationError,
    BlobNotFoundError,
    CheckinStoreError,
    DuplicateSubmissionError,
    LocationCaptureError,
    LocationTimeoutError,
    NotFoundError,
    PermissionDeniedError,
    PositionUnavailableError,
    RecordNotFoundError,
    RemoteSyncError,
    StorageConnectionError,
    StorageError,
    StorageFullError,
    StorageIOError,
    ValidationError,
)
from .export import decode_blob_text, export_snapshot, write_snapshot
from .id_utils import generate_submission_id
from .remote import HttpSyncAdapter, InMemorySyncAdapter, RemoteSyncAdapter, create_adapter
from .stats import compute_remote_stats, compute_storage_stats, format_size
from .sync import SyncOrchestrator

# Types
from .types import (
    CheckinRecord,
    LocationReading,
    RemoteCheckin,
    RemoteStats,
    StorageStats,
    StoreSnapshot,
    SyncResult,
    SyncState,
)

__all__ = [
    # Local persistence
    "BlobStore",
    "MetadataIndex",
    "LocalCheckinStore",
    # Sync
    "SyncOrchestrator",
    "RemoteSyncAdapter",
    "InMemorySyncAdapter",
    "HttpSyncAdapter",
    "create_adapter",
    # Capture
    "ImageSource",
    "LocationSource",
    "acquire_location",
    # Config
    "StoreConfig",
    "SyncBackend",
    "CosmosAuthMethod",
    # Types
    "LocationReading",
    "CheckinRecord",
    "StoreSnapshot",
    "StorageStats",
    "RemoteCheckin",
    "RemoteStats",
    "SyncResult",
    "SyncState",
    # Functions
    "export_snapshot",
    "write_snapshot",
    "decode_blob_text",
    "compute_storage_stats",
    "compute_remote_stats",
    "format_size",
    "generate_submission_id",
    # Exceptions
    "CheckinStoreError",
    "ValidationError",
    "DuplicateSubmissionError",
    "StorageError",
    "StorageIOError",
    "StorageFullError",
    "NotFoundError",
    "BlobNotFoundError",
    "RecordNotFoundError",
    "RemoteSyncError",
    "StorageConnectionError",
    "AuthenticationError",
    "LocationCaptureError",
    "PermissionDeniedError",
    "PositionUnavailableError",
    "LocationTimeoutError",
]

__version__ = "0.1.0"

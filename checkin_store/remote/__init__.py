"""
Remote sync adapters.

One contract, several interchangeable backends:

    # In-process reference backend
    from checkin_store.remote import InMemorySyncAdapter

    # REST check-in API
    from checkin_store.remote import HttpSyncAdapter

    # Azure Cosmos DB
    from checkin_store.remote.cosmos import CosmosSyncAdapter

Use ``create_adapter(config)`` to construct whichever backend the
deployment configures.
"""

from __future__ import annotations

from ..config import StoreConfig, SyncBackend
from .base import RemoteSyncAdapter
from .http import HttpSyncAdapter
from .memory import InMemorySyncAdapter


def create_adapter(config: StoreConfig) -> RemoteSyncAdapter | None:
    """Build the remote adapter selected by ``config.sync_backend``.

    Returns:
        The adapter, or None when the backend is SyncBackend.NONE
    """
    backend = config.sync_backend

    if backend == SyncBackend.NONE:
        return None
    if backend == SyncBackend.MEMORY:
        return InMemorySyncAdapter()
    if backend == SyncBackend.HTTP:
        return HttpSyncAdapter(
            config.api_base_url,
            timeout=config.api_timeout,
            health_timeout=config.api_health_timeout,
        )
    if backend == SyncBackend.COSMOS:
        from .cosmos import CosmosSyncAdapter

        return CosmosSyncAdapter.from_config(config)

    raise ValueError(f"Unsupported sync backend: {backend}")


__all__ = [
    "RemoteSyncAdapter",
    "InMemorySyncAdapter",
    "HttpSyncAdapter",
    "create_adapter",
]

"""
Derived statistics for local and remote check-ins.

Nothing here is persisted; every figure is recomputed on demand.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from .config import DEFAULT_PER_IMAGE_ESTIMATE
from .types import RemoteCheckin, RemoteStats, StorageStats

if TYPE_CHECKING:
    from .local.blob_store import BlobStore
    from .local.metadata_index import MetadataIndex

KIB = 1024
MIB = 1024 * 1024


def format_size(size_bytes: int) -> str:
    """Format a byte count as KB below one megabyte, MB otherwise."""
    if size_bytes < MIB:
        return f"{size_bytes / KIB:.1f} KB"
    return f"{size_bytes / MIB:.1f} MB"


async def compute_storage_stats(
    index: MetadataIndex,
    blob_store: BlobStore,
    per_image_estimate: int = DEFAULT_PER_IMAGE_ESTIMATE,
) -> StorageStats:
    """Compute counts and an approximate footprint of the local store.

    ``total_images`` is counted from the blob store itself and may exceed
    ``total_checkins`` when orphaned blobs exist. The size is a heuristic:
    serialized metadata plus a fixed estimate per check-in, never the
    exact on-disk usage.
    """
    total_checkins = await index.count()
    total_images = await blob_store.count()
    metadata_size = await index.size_bytes()

    return StorageStats(
        total_checkins=total_checkins,
        total_images=total_images,
        storage_size_bytes=metadata_size + per_image_estimate * total_checkins,
    )


def compute_remote_stats(
    records: Iterable[RemoteCheckin],
    now: datetime | None = None,
) -> RemoteStats:
    """Aggregate remote check-ins.

    Args:
        records: Check-ins as listed by a remote adapter
        now: Reference time; defaults to the current local time

    ``today_count`` counts check-ins since local midnight of ``now``;
    ``last_7_days_count`` counts check-ins in the trailing seven days.
    """
    now = (now or datetime.now().astimezone()).astimezone()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = now - timedelta(days=7)

    total = 0
    users: set[str] = set()
    today = 0
    last_week = 0
    for record in records:
        total += 1
        users.add(record.user_code)
        created = record.created_at.astimezone(now.tzinfo)
        if created >= start_of_day:
            today += 1
        if created >= week_ago:
            last_week += 1

    return RemoteStats(
        total=total,
        unique_users=len(users),
        today_count=today,
        last_7_days_count=last_week,
    )

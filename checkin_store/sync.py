"""
Local-first submission with best-effort remote sync.

Architecture:
- Every submission is committed to the LOCAL store first; that commit
  alone decides whether the caller sees success
- Then, if a remote adapter is configured (and reachable), exactly one
  upload + insert attempt mirrors the check-in remotely
- A remote failure is logged and reported as NOT_SYNCED; it never
  raises, never rolls back the local commit, and is never retried
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable

from .config import StoreConfig
from .exceptions import AuthenticationError, RemoteSyncError
from .local.store import LocalCheckinStore
from .logging_utils import StoreLoggerAdapter
from .remote import create_adapter
from .remote.base import RemoteSyncAdapter
from .types import CheckinRecord, LocationReading, SyncResult, SyncState

logger = logging.getLogger(__name__)

SERVER_UNAVAILABLE = "Server not available"

# Oldest outcomes are dropped beyond this many submissions
MAX_TRACKED_STATES = 10_000


class SyncOrchestrator:
    """Submits check-ins to the local store and mirrors them remotely.

    The remote adapter is chosen once, when the orchestrator is built;
    the orchestrator never inspects which backend it is talking to.

    Once the backend rejects our credentials, remote attempts stop for
    the lifetime of this orchestrator. Build a new one to retry.
    """

    def __init__(
        self,
        store: LocalCheckinStore,
        adapter: RemoteSyncAdapter | None = None,
        probe_reachability: bool | None = None,
        on_sync_error: Callable[[CheckinRecord, Exception], None] | None = None,
        max_tracked_states: int = MAX_TRACKED_STATES,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Local store that owns the durable copy
            adapter: Remote backend, or None for local-only operation
            probe_reachability: Call adapter.health_check() before each attempt
                (defaults to the store config's setting)
            on_sync_error: Callback when a remote attempt fails
            max_tracked_states: How many recent outcomes get_sync_state remembers
        """
        self.store = store
        self.adapter = adapter
        self.probe_reachability = (
            store.config.probe_reachability if probe_reachability is None else probe_reachability
        )
        self.on_sync_error = on_sync_error

        self._auth_failed = False
        self._auth_error_message: str | None = None

        # In-memory view of recent outcomes, oldest first; not persisted
        self.max_tracked_states = max_tracked_states
        self._sync_states: OrderedDict[str, SyncState] = OrderedDict()

    @classmethod
    def from_config(
        cls,
        config: StoreConfig,
        on_sync_error: Callable[[CheckinRecord, Exception], None] | None = None,
    ) -> SyncOrchestrator:
        """Build the local store and the configured remote adapter from one config."""
        return cls(
            LocalCheckinStore(config),
            create_adapter(config),
            probe_reachability=config.probe_reachability,
            on_sync_error=on_sync_error,
        )

    async def submit(
        self,
        user_code: str,
        location: LocationReading,
        image: bytes,
        submission_id: str,
    ) -> SyncResult:
        """Store a check-in locally, then try once to mirror it remotely.

        Raises:
            ValidationError: Input rejected, nothing written
            StorageError: Local commit failed; the user must retry

        Remote failures are never raised; they are reported on the result.
        """
        # Local first - this is the source of truth
        record = await self.store.store_complete_checkin(
            user_code, location, image, submission_id
        )

        result = await self._sync_record(record, image)
        self._sync_states[record.id] = result.state
        while len(self._sync_states) > self.max_tracked_states:
            self._sync_states.popitem(last=False)
        return result

    async def _sync_record(self, record: CheckinRecord, image: bytes) -> SyncResult:
        log = StoreLoggerAdapter(
            logger, {"record_id": record.id, "submission_id": record.submission_id}
        )

        if self.adapter is None:
            return SyncResult(record=record, state=SyncState.SKIPPED)

        if self._auth_failed:
            return SyncResult(
                record=record,
                state=SyncState.NOT_SYNCED,
                error=self._auth_error_message,
            )

        try:
            if self.probe_reachability and not await self.adapter.health_check():
                log.info("Remote backend not reachable; check-in stored locally only")
                return SyncResult(
                    record=record, state=SyncState.NOT_SYNCED, error=SERVER_UNAVAILABLE
                )

            locator = await self.adapter.upload_blob(image, record.submission_id)
            remote_id = await self.adapter.insert_record(
                record.user_code,
                record.submission_id,
                record.location,
                locator,
            )
        except Exception as e:
            self._handle_sync_error(record, e, log)
            return SyncResult(record=record, state=SyncState.NOT_SYNCED, error=str(e))

        log.info(f"Check-in synced to {self.adapter.name} as {remote_id}")
        return SyncResult(
            record=record,
            state=SyncState.SYNCED,
            remote_id=remote_id,
            locator=locator,
        )

    def _handle_sync_error(
        self, record: CheckinRecord, error: Exception, log: logging.LoggerAdapter
    ) -> None:
        if isinstance(error, AuthenticationError):
            self._auth_failed = True
            self._auth_error_message = str(error)
            log.warning(f"Remote authentication failed - sync disabled. Error: {error}")
        elif isinstance(error, RemoteSyncError):
            log.warning(f"Remote sync failed, check-in stored locally: {error}")
        else:
            log.exception(f"Unexpected error during remote sync: {error}")

        if self.on_sync_error:
            try:
                self.on_sync_error(record, error)
            except Exception:
                log.exception("on_sync_error callback failed")

    def get_sync_state(self, record_id: str) -> SyncState | None:
        """Outcome recorded for a record submitted through this orchestrator."""
        return self._sync_states.get(record_id)

    def get_unsynced(self) -> set[str]:
        """Record IDs stored locally whose remote attempt did not succeed."""
        return {rid for rid, state in self._sync_states.items() if state == SyncState.NOT_SYNCED}

    @property
    def auth_failed(self) -> bool:
        return self._auth_failed

    @property
    def is_sync_enabled(self) -> bool:
        return self.adapter is not None and not self._auth_failed

    async def close(self) -> None:
        """Close the remote adapter and the local store."""
        if self.adapter is not None:
            await self.adapter.close()
        await self.store.close()

    async def __aenter__(self) -> SyncOrchestrator:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

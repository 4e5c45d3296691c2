"""Tests for SyncOrchestrator: local-first submission with best-effort remote sync."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from checkin_store import (
    AuthenticationError,
    InMemorySyncAdapter,
    LocalCheckinStore,
    LocationReading,
    RemoteSyncError,
    StorageError,
    StoreConfig,
    SyncOrchestrator,
    SyncState,
    ValidationError,
)
from checkin_store.sync import SERVER_UNAVAILABLE


class TestLocalOnly:
    async def test_no_adapter_is_skipped(
        self, store: LocalCheckinStore, location: LocationReading, jpeg: bytes
    ) -> None:
        orchestrator = SyncOrchestrator(store)

        result = await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")

        assert result.state == SyncState.SKIPPED
        assert not result.synced
        assert await store.get_checkin(result.local_id) == result.record
        assert orchestrator.is_sync_enabled is False
        assert orchestrator.get_unsynced() == set()


class TestRemoteSync:
    async def test_synced(
        self, store: LocalCheckinStore, location: LocationReading, jpeg: bytes
    ) -> None:
        adapter = InMemorySyncAdapter()
        orchestrator = SyncOrchestrator(store, adapter)

        result = await orchestrator.submit("FIELD_01", location, jpeg, "VER-ABC123")

        assert result.synced
        assert result.locator == "memory://images/VER-ABC123.jpg"
        assert await adapter.get_image(result.locator) == jpeg
        remote = (await adapter.list_all())[0]
        assert remote.remote_id == result.remote_id
        assert remote.submission_id == "VER-ABC123"
        assert remote.image_locator == result.locator
        assert orchestrator.get_sync_state(result.local_id) == SyncState.SYNCED

    async def test_unreachable_keeps_local_record(
        self, store: LocalCheckinStore, location: LocationReading, jpeg: bytes
    ) -> None:
        """Offline submission still succeeds locally and is reported unsynced."""
        adapter = InMemorySyncAdapter(reachable=False)
        orchestrator = SyncOrchestrator(store, adapter)

        result = await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")

        assert result.state == SyncState.NOT_SYNCED
        assert result.error == SERVER_UNAVAILABLE
        assert await store.index.count() == 1
        assert await store.get_image(result.record.blob_id) == jpeg
        assert orchestrator.get_unsynced() == {result.local_id}

    async def test_unreachable_without_health_check_still_not_synced(
        self, store: LocalCheckinStore, location: LocationReading, jpeg: bytes
    ) -> None:
        adapter = InMemorySyncAdapter(reachable=False)
        orchestrator = SyncOrchestrator(store, adapter, probe_reachability=False)

        result = await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")

        assert result.state == SyncState.NOT_SYNCED
        assert result.error != SERVER_UNAVAILABLE
        assert await store.index.count() == 1

    async def test_upload_failure_skips_insert(
        self, store: LocalCheckinStore, location: LocationReading, jpeg: bytes
    ) -> None:
        adapter = InMemorySyncAdapter()
        adapter.fail_uploads = True
        orchestrator = SyncOrchestrator(store, adapter)

        result = await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")

        assert result.state == SyncState.NOT_SYNCED
        assert adapter.records == []
        assert await store.index.count() == 1

    async def test_insert_failure(
        self, store: LocalCheckinStore, location: LocationReading, jpeg: bytes
    ) -> None:
        adapter = InMemorySyncAdapter()
        adapter.fail_inserts = True
        orchestrator = SyncOrchestrator(store, adapter)

        result = await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")

        assert result.state == SyncState.NOT_SYNCED
        assert result.remote_id is None
        assert await store.index.count() == 1

    async def test_unexpected_error_does_not_escape(
        self, store: LocalCheckinStore, location: LocationReading, jpeg: bytes
    ) -> None:
        adapter = InMemorySyncAdapter()
        adapter.upload_blob = AsyncMock(side_effect=RuntimeError("boom"))  # type: ignore[method-assign]
        orchestrator = SyncOrchestrator(store, adapter)

        result = await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")

        assert result.state == SyncState.NOT_SYNCED
        assert result.error == "boom"

    async def test_single_attempt_no_retry(
        self, store: LocalCheckinStore, location: LocationReading, jpeg: bytes
    ) -> None:
        adapter = InMemorySyncAdapter()
        adapter.upload_blob = AsyncMock(  # type: ignore[method-assign]
            side_effect=RemoteSyncError("memory", "upload_blob")
        )
        orchestrator = SyncOrchestrator(store, adapter)

        await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")

        assert adapter.upload_blob.await_count == 1

    async def test_error_callback(
        self, store: LocalCheckinStore, location: LocationReading, jpeg: bytes
    ) -> None:
        adapter = InMemorySyncAdapter()
        adapter.fail_uploads = True
        callback = MagicMock()
        orchestrator = SyncOrchestrator(store, adapter, on_sync_error=callback)

        result = await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")

        callback.assert_called_once()
        record, error = callback.call_args.args
        assert record == result.record
        assert isinstance(error, RemoteSyncError)

    async def test_failing_callback_is_contained(
        self, store: LocalCheckinStore, location: LocationReading, jpeg: bytes
    ) -> None:
        adapter = InMemorySyncAdapter()
        adapter.fail_uploads = True
        orchestrator = SyncOrchestrator(
            store, adapter, on_sync_error=MagicMock(side_effect=ValueError("callback"))
        )

        result = await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")

        assert result.state == SyncState.NOT_SYNCED


class TestAuthFailure:
    async def test_auth_failure_disables_sync(
        self, store: LocalCheckinStore, location: LocationReading, jpeg: bytes
    ) -> None:
        adapter = InMemorySyncAdapter()
        adapter.upload_blob = AsyncMock(  # type: ignore[method-assign]
            side_effect=AuthenticationError("memory", "token expired")
        )
        orchestrator = SyncOrchestrator(store, adapter)

        first = await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")
        second = await orchestrator.submit("FIELD_01", location, jpeg, "VER-2")

        assert first.state == SyncState.NOT_SYNCED
        assert second.state == SyncState.NOT_SYNCED
        assert second.error == first.error
        assert adapter.upload_blob.await_count == 1
        assert orchestrator.auth_failed
        assert orchestrator.is_sync_enabled is False
        assert await store.index.count() == 2
        assert orchestrator.get_unsynced() == {first.local_id, second.local_id}


class TestLocalFailures:
    async def test_validation_error_propagates(
        self, store: LocalCheckinStore, jpeg: bytes
    ) -> None:
        adapter = InMemorySyncAdapter()
        orchestrator = SyncOrchestrator(store, adapter)
        bad = LocationReading(latitude=95.0, longitude=0.0, accuracy=5.0)

        with pytest.raises(ValidationError):
            await orchestrator.submit("FIELD_01", bad, jpeg, "VER-1")

        assert adapter.images == {}
        assert await store.index.count() == 0

    async def test_local_storage_error_propagates(
        self, temp_dir, location: LocationReading, jpeg: bytes
    ) -> None:
        """Remote is never tried when the local commit fails."""
        store = LocalCheckinStore(StoreConfig(local_path=temp_dir, max_blob_bytes=10))
        adapter = InMemorySyncAdapter()
        orchestrator = SyncOrchestrator(store, adapter)

        with pytest.raises(StorageError):
            await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")

        assert adapter.records == []


class TestLifecycle:
    async def test_close_closes_adapter(self, store: LocalCheckinStore) -> None:
        adapter = InMemorySyncAdapter()
        adapter.close = AsyncMock()  # type: ignore[method-assign]

        async with SyncOrchestrator(store, adapter) as orchestrator:
            assert orchestrator.is_sync_enabled

        adapter.close.assert_awaited_once()


class TestConfiguration:
    async def test_reachability_setting_taken_from_store_config(
        self, temp_dir, location: LocationReading, jpeg: bytes
    ) -> None:
        store = LocalCheckinStore(StoreConfig(local_path=temp_dir, probe_reachability=False))
        adapter = InMemorySyncAdapter()
        adapter.health_check = AsyncMock(return_value=False)  # type: ignore[method-assign]
        orchestrator = SyncOrchestrator(store, adapter)

        result = await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")

        assert orchestrator.probe_reachability is False
        adapter.health_check.assert_not_awaited()
        assert result.synced

    async def test_explicit_reachability_argument_wins(self, temp_dir) -> None:
        store = LocalCheckinStore(StoreConfig(local_path=temp_dir, probe_reachability=False))

        assert SyncOrchestrator(store, probe_reachability=True).probe_reachability is True

    async def test_from_config(self, temp_dir, location: LocationReading, jpeg: bytes) -> None:
        config = StoreConfig(local_path=temp_dir, sync_backend="memory", probe_reachability=False)

        async with SyncOrchestrator.from_config(config) as orchestrator:
            result = await orchestrator.submit("FIELD_01", location, jpeg, "VER-1")

        assert isinstance(orchestrator.adapter, InMemorySyncAdapter)
        assert orchestrator.probe_reachability is False
        assert orchestrator.store.base_path == temp_dir
        assert result.synced

    async def test_from_config_without_backend(self, temp_dir) -> None:
        orchestrator = SyncOrchestrator.from_config(StoreConfig(local_path=temp_dir))

        assert orchestrator.adapter is None
        assert orchestrator.is_sync_enabled is False


class TestTrackedStates:
    async def test_oldest_outcomes_dropped(
        self, store: LocalCheckinStore, location: LocationReading, jpeg: bytes
    ) -> None:
        adapter = InMemorySyncAdapter(reachable=False)
        orchestrator = SyncOrchestrator(store, adapter, max_tracked_states=2)

        results = [
            await orchestrator.submit("FIELD_01", location, jpeg, f"VER-{i}") for i in range(3)
        ]

        assert orchestrator.get_sync_state(results[0].local_id) is None
        assert orchestrator.get_sync_state(results[2].local_id) == SyncState.NOT_SYNCED
        assert orchestrator.get_unsynced() == {results[1].local_id, results[2].local_id}
        # Dropping the in-memory outcome never touches the stored record
        assert await store.index.count() == 3

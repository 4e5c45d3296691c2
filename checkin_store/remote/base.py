"""
Abstract remote sync adapter interface.

Defines the contract that every remote backend must implement. The
sync orchestrator only ever talks to this interface; which concrete
backend is in use is decided once, at configuration time.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..types import LocationReading, RemoteCheckin, RemoteStats


class RemoteSyncAdapter(ABC):
    """Abstract interface for remote check-in backends.

    All methods except ``health_check`` raise RemoteSyncError (or a
    subclass) on any backend failure.
    """

    #: Short backend name used in logs and errors
    name: str = "remote"

    async def __aenter__(self) -> RemoteSyncAdapter:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @abstractmethod
    async def upload_blob(self, data: bytes, correlation_id: str) -> str:
        """Upload an image payload.

        Args:
            data: Encoded image bytes
            correlation_id: Submission ID the image belongs to

        Returns:
            Locator (URL or backend reference) for the stored image
        """
        ...

    @abstractmethod
    async def insert_record(
        self,
        user_code: str,
        submission_id: str,
        location: LocationReading,
        locator: str | None,
    ) -> str:
        """Insert check-in metadata.

        Returns:
            Backend-assigned record ID
        """
        ...

    @abstractmethod
    async def list_all(self) -> list[RemoteCheckin]:
        """All check-ins, newest first."""
        ...

    @abstractmethod
    async def list_by_user(self, user_code: str) -> list[RemoteCheckin]:
        """Check-ins for one user code, newest first."""
        ...

    @abstractmethod
    async def compute_stats(self) -> RemoteStats:
        """Total, distinct users, today's and trailing-7-day counts."""
        ...

    async def health_check(self) -> bool:
        """Check reachability. Must return False rather than raise."""
        return True

    async def close(self) -> None:
        """Release connections."""
        pass

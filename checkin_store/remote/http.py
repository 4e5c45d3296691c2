"""
REST API remote sync adapter.

Talks to a check-in API with the following endpoints, relative to the
configured base URL:

    GET  /health                  reachability check
    POST /upload-image            multipart: image, checkinId -> {"imageUrl": ...}
    POST /checkins                JSON check-in -> {"id": ...}
    GET  /checkins[?userCode=X]   list of check-ins

Statistics are computed client-side from the listing.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from ..exceptions import AuthenticationError, RemoteSyncError, StorageConnectionError
from ..stats import compute_remote_stats
from ..types import LocationReading, RemoteCheckin, RemoteStats
from .base import RemoteSyncAdapter

logger = logging.getLogger(__name__)


class HttpSyncAdapter(RemoteSyncAdapter):
    """Remote backend reached over HTTP with aiohttp.

    Example:
        >>> async with HttpSyncAdapter("https://checkins.example.com/api") as adapter:
        ...     locator = await adapter.upload_blob(image, "VER-ABC123")
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        health_timeout: float = 5.0,
        auth_token: str | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            base_url: API root, e.g. ``http://localhost:3001/api``
            timeout: Total seconds allowed per request
            health_timeout: Seconds allowed for the health check
            auth_token: Optional bearer token
            session: Existing client session to reuse (not closed by this adapter)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.health_timeout = health_timeout
        self.auth_token = auth_token
        self._session = session
        self._owns_session = session is None

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def _request(self, method: str, path: str, operation: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with self._get_session().request(
                method, url, headers=self._headers(), **kwargs
            ) as response:
                try:
                    result = await response.json(content_type=None)
                except ValueError:
                    result = None

                if response.status in (401, 403):
                    raise AuthenticationError(self.name, f"HTTP {response.status} from {url}")
                if response.status >= 400:
                    reason = (
                        result.get("error") if isinstance(result, dict) else None
                    ) or f"HTTP {response.status}"
                    raise RemoteSyncError(
                        self.name, operation, message=f"Remote {operation} failed: {reason}"
                    )
                return result
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            raise StorageConnectionError(self.name, url, e) from e
        except aiohttp.ClientError as e:
            raise RemoteSyncError(self.name, operation, e) from e

    async def upload_blob(self, data: bytes, correlation_id: str) -> str:
        form = aiohttp.FormData()
        form.add_field(
            "image",
            data,
            filename=f"selfie-{correlation_id}.jpg",
            content_type="image/jpeg",
        )
        form.add_field("checkinId", correlation_id)

        result = await self._request("POST", "/upload-image", "upload_blob", data=form)
        if not isinstance(result, dict) or not result.get("imageUrl"):
            raise RemoteSyncError(
                self.name, "upload_blob", message="Upload response has no imageUrl"
            )
        return result["imageUrl"]

    async def insert_record(
        self,
        user_code: str,
        submission_id: str,
        location: LocationReading,
        locator: str | None,
    ) -> str:
        payload = {
            "userCode": user_code,
            "submissionId": submission_id,
            "timestamp": int(location.captured_at.timestamp() * 1000),
            "location": {
                "latitude": location.latitude,
                "longitude": location.longitude,
                "accuracy": location.accuracy,
                "timestamp": int(location.captured_at.timestamp() * 1000),
            },
            "imageUrl": locator,
        }
        result = await self._request("POST", "/checkins", "insert_record", json=payload)
        if not isinstance(result, dict) or "id" not in result:
            raise RemoteSyncError(self.name, "insert_record", message="Insert response has no id")
        return str(result["id"])

    async def _list(self, params: dict[str, str] | None = None) -> list[RemoteCheckin]:
        result = await self._request("GET", "/checkins", "list", params=params)
        if not isinstance(result, list):
            raise RemoteSyncError(self.name, "list", message="Listing response is not a list")
        try:
            records = [RemoteCheckin.from_dict(item) for item in result]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise RemoteSyncError(self.name, "list", e) from e
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    async def list_all(self) -> list[RemoteCheckin]:
        return await self._list()

    async def list_by_user(self, user_code: str) -> list[RemoteCheckin]:
        return await self._list({"userCode": user_code})

    async def compute_stats(self) -> RemoteStats:
        return compute_remote_stats(await self.list_all())

    async def health_check(self) -> bool:
        url = f"{self.base_url}/health"
        try:
            async with self._get_session().get(
                url,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.health_timeout),
            ) as response:
                return response.status < 400
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.info(f"API health check failed: {e}")
            return False

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

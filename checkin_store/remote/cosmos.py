"""
Cosmos DB remote sync adapter.

Mirrors check-ins to two Azure Cosmos DB containers:
- checkins: check-in metadata documents (partition key /user_code)
- images: base64-encoded image documents (partition key /submission_id)

Images are stored inline as documents, so a single image must stay
below the Cosmos DB item size limit (2 MB).
"""

from __future__ import annotations

import base64
import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from azure.cosmos import PartitionKey
from azure.cosmos.aio import ContainerProxy, CosmosClient, DatabaseProxy
from azure.cosmos.exceptions import CosmosHttpResponseError
from azure.identity.aio import DefaultAzureCredential

from ..config import CosmosAuthMethod, StoreConfig
from ..exceptions import AuthenticationError, RemoteSyncError, StorageConnectionError
from ..stats import compute_remote_stats
from ..types import LocationReading, RemoteCheckin, RemoteStats
from .base import RemoteSyncAdapter

logger = logging.getLogger(__name__)

CHECKINS_CONTAINER = "checkins"
IMAGES_CONTAINER = "images"

# Cosmos DB rejects items above 2 MB; leave room for the envelope
MAX_IMAGE_BYTES = 1_500_000


class CosmosSyncAdapter(RemoteSyncAdapter):
    """Remote backend on Azure Cosmos DB (async SDK).

    Document schema (checkins):
    {
        "id": "{uuid}",
        "user_code": "...",
        "submission_id": "VER-...",
        "latitude": 40.71, "longitude": -74.0, "accuracy": 5.0,
        "image_url": "cosmos://images/{image_id}",
        "created_at": "{iso_timestamp}",
        "captured_at": "{iso_timestamp}"
    }
    """

    name = "cosmos"

    def __init__(
        self,
        endpoint: str,
        database_name: str = "checkins-db",
        auth_method: CosmosAuthMethod = CosmosAuthMethod.DEFAULT_CREDENTIAL,
        key: str | None = None,
    ) -> None:
        if not endpoint:
            raise AuthenticationError(self.name, "Cosmos endpoint is required")
        if auth_method == CosmosAuthMethod.KEY and not key:
            raise AuthenticationError(self.name, "cosmos key required for KEY authentication")

        self.endpoint = endpoint
        self.database_name = database_name
        self.auth_method = auth_method
        self.key = key

        self._client: CosmosClient | None = None
        self._credential: DefaultAzureCredential | None = None
        self._database: DatabaseProxy | None = None
        self._containers: dict[str, ContainerProxy] = {}
        self._initialized = False

    @classmethod
    def from_config(cls, config: StoreConfig) -> CosmosSyncAdapter:
        return cls(
            endpoint=config.cosmos_endpoint or "",
            database_name=config.cosmos_database,
            auth_method=config.cosmos_auth_method,
            key=config.cosmos_key,
        )

    async def initialize(self) -> None:
        """Initialize connection and ensure containers exist."""
        if self._initialized:
            return

        try:
            if self.auth_method == CosmosAuthMethod.KEY:
                self._client = CosmosClient(self.endpoint, credential=self.key)
            else:
                self._credential = DefaultAzureCredential()
                self._client = CosmosClient(self.endpoint, credential=self._credential)

            self._database = await self._client.create_database_if_not_exists(
                id=self.database_name
            )
            await self._ensure_container(CHECKINS_CONTAINER, "/user_code")
            await self._ensure_container(IMAGES_CONTAINER, "/submission_id")

            self._initialized = True
            logger.info(f"Cosmos sync adapter initialized: {self.endpoint}")

        except CosmosHttpResponseError as e:
            await self.close()
            if e.status_code in (401, 403):
                raise AuthenticationError(self.name, str(e)) from e
            raise StorageConnectionError(self.name, self.endpoint, e) from e
        except Exception as e:
            await self.close()
            raise StorageConnectionError(self.name, self.endpoint, e) from e

    async def _ensure_container(self, name: str, partition_key_path: str) -> None:
        if self._database is None:
            raise StorageConnectionError(self.name, self.endpoint)

        container = await self._database.create_container_if_not_exists(
            id=name,
            partition_key=PartitionKey(path=partition_key_path),
        )
        self._containers[name] = container

    async def _get_container(self, name: str) -> ContainerProxy:
        await self.initialize()
        return self._containers[name]

    async def __aenter__(self) -> CosmosSyncAdapter:
        await self.initialize()
        return self

    async def upload_blob(self, data: bytes, correlation_id: str) -> str:
        if len(data) > MAX_IMAGE_BYTES:
            raise RemoteSyncError(
                self.name,
                "upload_blob",
                message=f"Image of {len(data)} bytes exceeds {MAX_IMAGE_BYTES} bytes",
            )

        container = await self._get_container(IMAGES_CONTAINER)
        image_id = f"{correlation_id}.jpg"
        doc = {
            "id": image_id,
            "submission_id": correlation_id,
            "content_type": "image/jpeg",
            "data": base64.b64encode(data).decode("ascii"),
            "size_bytes": len(data),
            "uploaded_at": datetime.now(UTC).isoformat(),
        }
        try:
            await container.upsert_item(body=doc)
        except CosmosHttpResponseError as e:
            raise self._translate(e, "upload_blob") from e
        return f"cosmos://{IMAGES_CONTAINER}/{image_id}"

    async def insert_record(
        self,
        user_code: str,
        submission_id: str,
        location: LocationReading,
        locator: str | None,
    ) -> str:
        container = await self._get_container(CHECKINS_CONTAINER)
        doc = {
            "id": str(uuid.uuid4()),
            "user_code": user_code,
            "submission_id": submission_id,
            "latitude": location.latitude,
            "longitude": location.longitude,
            "accuracy": location.accuracy,
            "image_url": locator,
            "captured_at": location.captured_at.isoformat(),
            "created_at": datetime.now(UTC).isoformat(),
        }
        try:
            created = await container.create_item(body=doc)
        except CosmosHttpResponseError as e:
            raise self._translate(e, "insert_record") from e
        return created["id"]

    async def _query(
        self, query: str, params: list[dict[str, Any]] | None = None
    ) -> list[RemoteCheckin]:
        container = await self._get_container(CHECKINS_CONTAINER)
        records: list[RemoteCheckin] = []
        try:
            async for doc in container.query_items(query=query, parameters=params or []):
                records.append(RemoteCheckin.from_dict(doc))
        except CosmosHttpResponseError as e:
            raise self._translate(e, "list") from e
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteSyncError(self.name, "list", e) from e
        return records

    async def list_all(self) -> list[RemoteCheckin]:
        return await self._query("SELECT * FROM c ORDER BY c.created_at DESC")

    async def list_by_user(self, user_code: str) -> list[RemoteCheckin]:
        return await self._query(
            "SELECT * FROM c WHERE c.user_code = @user_code ORDER BY c.created_at DESC",
            [{"name": "@user_code", "value": user_code}],
        )

    async def compute_stats(self) -> RemoteStats:
        return compute_remote_stats(await self.list_all())

    async def health_check(self) -> bool:
        try:
            await self.initialize()
            return True
        except RemoteSyncError as e:
            logger.info(f"Cosmos DB not reachable: {e}")
            return False

    async def close(self) -> None:
        if self._client:
            await self._client.close()
            self._client = None

        if self._credential:
            await self._credential.close()
            self._credential = None

        self._database = None
        self._containers = {}
        self._initialized = False

    def _translate(self, error: CosmosHttpResponseError, operation: str) -> RemoteSyncError:
        if error.status_code in (401, 403):
            return AuthenticationError(self.name, str(error))
        return RemoteSyncError(self.name, operation, error)

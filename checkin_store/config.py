"""
Store configuration.

Selects the local storage location and which remote sync backend,
if any, mirrors submissions.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

DEFAULT_LOCAL_PATH = Path.home() / ".checkin_store"
DEFAULT_API_BASE_URL = "http://localhost:3001/api"

# Rough size of one captured JPEG, used by the storage estimate
DEFAULT_PER_IMAGE_ESTIMATE = 500 * 1024


class SyncBackend(Enum):
    """Remote sync backend selected at deployment time.

    NONE: Local-only, no remote mirror
    MEMORY: In-process reference backend (tests, demos)
    HTTP: REST check-in API
    COSMOS: Azure Cosmos DB
    """

    NONE = "none"
    MEMORY = "memory"
    HTTP = "http"
    COSMOS = "cosmos"


class CosmosAuthMethod(Enum):
    """Authentication method for Cosmos DB.

    KEY: Use account key
    DEFAULT_CREDENTIAL: Use Azure DefaultAzureCredential
    """

    KEY = "key"
    DEFAULT_CREDENTIAL = "default_credential"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str) -> int | None:
    value = os.environ.get(name)
    return int(value) if value else None


@dataclass
class StoreConfig:
    """Configuration for the check-in store.

    Configuration can be provided directly, from environment variables
    or from a YAML settings file.

    Environment Variables:
        CHECKIN_LOCAL_PATH: Directory for blobs and the metadata index
        CHECKIN_MAX_BLOB_BYTES: Optional quota for the blob store
        CHECKIN_PER_IMAGE_ESTIMATE: Bytes per image used by the size estimate
        CHECKIN_UNIQUE_SUBMISSIONS: Reject duplicate submission IDs (true/false)
        CHECKIN_MIN_USER_CODE_LENGTH: Minimum accepted user code length (default 1)
        CHECKIN_SYNC_BACKEND: none | memory | http | cosmos
        CHECKIN_PROBE_REACHABILITY: Health-check before syncing (default true)
        CHECKIN_API_BASE_URL: Base URL of the REST check-in API
        CHECKIN_API_TIMEOUT: Seconds for REST requests
        CHECKIN_COSMOS_ENDPOINT: Cosmos DB endpoint URL
        CHECKIN_COSMOS_KEY: Cosmos DB key (if using key auth)
        CHECKIN_COSMOS_DATABASE: Database name (default: checkins-db)
        CHECKIN_COSMOS_AUTH_METHOD: key | default_credential

    Attributes:
        local_path: Root directory for local persistence
        max_blob_bytes: Blob store quota, None for unlimited
        per_image_estimate_bytes: Heuristic size per image for stats
        enforce_unique_submission_ids: Reject a repeated submission ID
        min_user_code_length: Minimum accepted user code length
        sync_backend: Which remote adapter to construct
        probe_reachability: Run health_check before each remote attempt
    """

    local_path: Path = field(default_factory=lambda: DEFAULT_LOCAL_PATH)
    max_blob_bytes: int | None = None
    per_image_estimate_bytes: int = DEFAULT_PER_IMAGE_ESTIMATE
    enforce_unique_submission_ids: bool = False
    min_user_code_length: int = 1

    # Remote sync
    sync_backend: SyncBackend = SyncBackend.NONE
    probe_reachability: bool = True

    # REST API settings
    api_base_url: str = DEFAULT_API_BASE_URL
    api_timeout: float = 30.0
    api_health_timeout: float = 5.0

    # Cosmos DB connection settings
    cosmos_endpoint: str | None = None
    cosmos_key: str | None = None
    cosmos_database: str = "checkins-db"
    cosmos_auth_method: CosmosAuthMethod = CosmosAuthMethod.DEFAULT_CREDENTIAL

    def __post_init__(self) -> None:
        self.local_path = Path(self.local_path).expanduser()
        if isinstance(self.sync_backend, str):
            self.sync_backend = SyncBackend(self.sync_backend.lower())
        if isinstance(self.cosmos_auth_method, str):
            self.cosmos_auth_method = CosmosAuthMethod(self.cosmos_auth_method.lower())

    @classmethod
    def from_environment(cls) -> StoreConfig:
        """Create configuration from environment variables."""
        backend_str = os.environ.get("CHECKIN_SYNC_BACKEND", "none")
        try:
            backend = SyncBackend(backend_str.lower())
        except ValueError:
            backend = SyncBackend.NONE

        auth_str = os.environ.get("CHECKIN_COSMOS_AUTH_METHOD", "default_credential")
        try:
            auth_method = CosmosAuthMethod(auth_str.lower())
        except ValueError:
            auth_method = CosmosAuthMethod.DEFAULT_CREDENTIAL

        return cls(
            local_path=Path(os.environ.get("CHECKIN_LOCAL_PATH", str(DEFAULT_LOCAL_PATH))),
            max_blob_bytes=_env_int("CHECKIN_MAX_BLOB_BYTES"),
            per_image_estimate_bytes=(
                _env_int("CHECKIN_PER_IMAGE_ESTIMATE") or DEFAULT_PER_IMAGE_ESTIMATE
            ),
            enforce_unique_submission_ids=_env_bool("CHECKIN_UNIQUE_SUBMISSIONS"),
            min_user_code_length=_env_int("CHECKIN_MIN_USER_CODE_LENGTH") or 1,
            sync_backend=backend,
            probe_reachability=_env_bool("CHECKIN_PROBE_REACHABILITY", True),
            api_base_url=os.environ.get("CHECKIN_API_BASE_URL", DEFAULT_API_BASE_URL),
            api_timeout=float(os.environ.get("CHECKIN_API_TIMEOUT", "30")),
            cosmos_endpoint=os.environ.get("CHECKIN_COSMOS_ENDPOINT"),
            cosmos_key=os.environ.get("CHECKIN_COSMOS_KEY"),
            cosmos_database=os.environ.get("CHECKIN_COSMOS_DATABASE", "checkins-db"),
            cosmos_auth_method=auth_method,
        )

    @classmethod
    def from_file(cls, path: Path) -> StoreConfig:
        """Load configuration from a YAML settings file.

        Settings live under a ``checkin_store`` section:

        ```yaml
        checkin_store:
          local_path: ~/.checkin_store
          sync_backend: http
          api_base_url: https://checkins.example.com/api
        ```

        Unknown keys are ignored.
        """
        content = Path(path).read_text(encoding="utf-8")
        data: Any = yaml.safe_load(content) or {}
        section = (data.get("checkin_store") or data) if isinstance(data, dict) else None
        if not isinstance(section, dict):
            raise ValueError(f"Settings in {path} must be a mapping")
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in section.items() if k in known})

"""
Custom exceptions for the check-in store.

Every layer raises these so callers can tell apart a rejected input,
a failed local commit, a missing read and a remote mirror failure.
"""


class CheckinStoreError(Exception):
    """Base exception for all check-in store errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(CheckinStoreError):
    """Raised when input is rejected before any persistence attempt."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Validation failed for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value


class DuplicateSubmissionError(ValidationError):
    """Raised when a submission ID is already present in the index."""

    def __init__(self, submission_id: str):
        super().__init__("submission_id", "already exists", submission_id)
        self.submission_id = submission_id


class StorageError(CheckinStoreError):
    """Raised when a local persistence operation fails.

    The original fault is kept on ``cause`` and chained as ``__cause__``.
    """

    def __init__(
        self,
        operation: str,
        cause: Exception | None = None,
        message: str | None = None,
    ):
        details: dict = {"operation": operation}
        if cause:
            details["cause"] = str(cause)
        super().__init__(message or f"Storage error during {operation}", details)
        self.operation = operation
        self.cause = cause


class StorageIOError(StorageError):
    """Raised when a file-level read or write fails."""

    def __init__(self, operation: str, path: str | None = None, cause: Exception | None = None):
        message = f"Storage I/O error during {operation}"
        if path:
            message += f": {path}"
        super().__init__(operation, cause, message)
        if path:
            self.details["path"] = path
        self.path = path


class StorageFullError(StorageError):
    """Raised when a blob write would exceed the configured quota."""

    def __init__(self, size_bytes: int, used_bytes: int, max_bytes: int):
        super().__init__(
            "put_blob",
            message=(
                f"Blob store full: writing {size_bytes} bytes with {used_bytes} "
                f"already used exceeds {max_bytes} bytes"
            ),
        )
        self.details.update(
            {"size_bytes": size_bytes, "used_bytes": used_bytes, "max_bytes": max_bytes}
        )
        self.size_bytes = size_bytes
        self.used_bytes = used_bytes
        self.max_bytes = max_bytes


class NotFoundError(CheckinStoreError):
    """Raised when a referenced blob or record is missing on read."""


class BlobNotFoundError(NotFoundError):
    """Raised when a blob ID does not resolve."""

    def __init__(self, blob_id: str, record_id: str | None = None):
        details = {"blob_id": blob_id}
        if record_id:
            details["record_id"] = record_id
        super().__init__(f"Blob not found: {blob_id}", details)
        self.blob_id = blob_id
        self.record_id = record_id


class RecordNotFoundError(NotFoundError):
    """Raised when a check-in record ID does not resolve."""

    def __init__(self, record_id: str):
        super().__init__(f"Check-in not found: {record_id}", {"record_id": record_id})
        self.record_id = record_id


class RemoteSyncError(CheckinStoreError):
    """Raised by remote sync adapters for any backend failure."""

    def __init__(
        self,
        backend: str,
        operation: str,
        cause: Exception | None = None,
        message: str | None = None,
    ):
        details: dict = {"backend": backend, "operation": operation}
        if cause:
            details["cause"] = str(cause)
        super().__init__(message or f"Remote {operation} failed on {backend}", details)
        self.backend = backend
        self.operation = operation
        self.cause = cause


class StorageConnectionError(RemoteSyncError):
    """Raised when the remote backend cannot be reached.

    Note: Named StorageConnectionError to avoid shadowing the builtin ConnectionError.
    """

    def __init__(self, backend: str, endpoint: str, cause: Exception | None = None):
        super().__init__(backend, "connect", cause, f"Connection failed to {endpoint}")
        self.details["endpoint"] = endpoint
        self.endpoint = endpoint


class AuthenticationError(RemoteSyncError):
    """Raised when authentication to the remote backend fails."""

    def __init__(self, backend: str, reason: str | None = None):
        super().__init__(backend, "authenticate", message=f"Authentication failed for {backend}")
        if reason:
            self.details["reason"] = reason
        self.reason = reason


class LocationCaptureError(CheckinStoreError):
    """Base for failures reported by the geolocation collaborator."""


class PermissionDeniedError(LocationCaptureError):
    """The user refused location access."""

    def __init__(self, message: str = "Location access denied"):
        super().__init__(message, {"code": "permission_denied"})


class PositionUnavailableError(LocationCaptureError):
    """The device could not determine a position."""

    def __init__(self, message: str = "Location information unavailable"):
        super().__init__(message, {"code": "position_unavailable"})


class LocationTimeoutError(LocationCaptureError):
    """The location request did not complete in time."""

    def __init__(self, timeout: float):
        super().__init__(
            f"Location request timed out after {timeout}s",
            {"code": "timeout", "timeout": timeout},
        )
        self.timeout = timeout

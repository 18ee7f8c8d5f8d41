"""Exceptions raised by the catalog sync and read path."""

from typing import Any, Optional

__all__ = [
    "SyncError",
    "RemoteFetchError",
    "PerProductSyncError",
    "ParseError",
    "NotFoundError",
    "StoreError",
]


class SyncError(Exception):
    """Base class for catalog sync errors."""


class RemoteFetchError(SyncError):
    """Network or HTTP failure talking to the remote catalog."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class PerProductSyncError(SyncError):
    """A single product could not be normalized or persisted."""

    def __init__(self, external_id: Any, cause: BaseException):
        super().__init__(f"Failed to sync product {external_id}: {cause}")
        self.external_id = external_id
        self.cause = cause


class ParseError(SyncError, ValueError):
    """A serialized field read back from the store is malformed."""

    def __init__(self, field: str, message: str):
        super().__init__(f"Cannot parse field '{field}': {message}")
        self.field = field


class NotFoundError(SyncError, LookupError):
    """No product matches the identifier within the rental category."""


class StoreError(SyncError):
    """The catalog store is unreachable or a statement failed."""

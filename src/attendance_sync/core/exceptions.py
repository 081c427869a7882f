class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class StoreError(DomainError):
    """Base class for local record store failures."""


class StorageUnavailable(StoreError):
    """Raised when the local store is used before it has been opened."""


class WriteFailed(StoreError):
    """Raised when the underlying database rejects a write."""


class RecordNotFound(StoreError):
    """Raised when a record id does not exist in the local store."""

    def __init__(self, record_id: int):
        super().__init__(f"Record {record_id} not found")
        self.record_id = record_id


class RemoteError(DomainError):
    """Base class for remote submission channel failures."""


class Unauthenticated(RemoteError):
    """Raised before any network attempt when no identity is signed in."""


class RemoteRejected(RemoteError):
    """Raised when the remote explicitly reports a failure."""


class TransportFailure(RemoteError):
    """Raised when a request never completed with a usable response."""

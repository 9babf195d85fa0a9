"""
Nabha Shiksha: Error Taxonomy

Offline-layer failures degrade gracefully; only MalformedRecord and
UnknownCollection are meant to reach the caller as hard errors.
"""


class ShikshaError(Exception):
    """Base class for all application errors."""


class StorageUnavailable(ShikshaError):
    """The local durable store could not be opened. Degrade to memory-only."""


class NetworkUnreachable(ShikshaError):
    """Transient connectivity failure. Drives cache fallback and queueing."""


class SyncExhausted(ShikshaError):
    """A queued mutation failed on every allowed attempt and was dropped."""

    def __init__(self, item: dict, attempts: int):
        self.item = item
        self.attempts = attempts
        super().__init__(
            f"sync item {item.get('id')} ({item.get('type')}) dropped after {attempts} attempts"
        )


class UpstreamServiceError(ShikshaError):
    """Content, entity or sentiment service failed."""


class MalformedRecord(ShikshaError):
    """A stored record could not be decoded."""


class UnknownCollection(ShikshaError, KeyError):
    """Collection or index name is not part of the store schema."""


class ApiError(ShikshaError):
    """HTTP-facing error carrying the {error, message} envelope."""

    def __init__(self, status_code: int, error: str, message: str):
        self.status_code = status_code
        self.error = error
        self.message = message
        super().__init__(f"{status_code} {error}: {message}")

"""Callstore exceptions."""


class CallStoreError(Exception):
    """Base exception for callstore."""

    pass


class ConfigError(CallStoreError):
    """Configuration error."""

    pass


class NotFoundError(CallStoreError):
    """Requested record not found."""

    pass


class CallNotFoundError(NotFoundError):
    """Call not found."""

    pass


class LogNotFoundError(NotFoundError):
    """Call log not found."""

    pass


class InvalidFilterError(CallStoreError):
    """Call filter is missing required fields or has invalid values."""

    pass


class InvalidKeyError(CallStoreError):
    """A key does not match the expected namespace layout.

    Raised when encoding identifiers that would collide with the key
    separator, and when a listed key fails to decode.
    """

    pass


class BackendError(CallStoreError):
    """Object store operation failed."""

    pass


class MarkerWriteError(BackendError):
    """The call record was written but its path marker was not.

    The call stays retrievable by id; only path-scoped listing misses it.
    """

    def __init__(self, message: str, primary_key: str, marker_key: str) -> None:
        super().__init__(message)
        self.primary_key = primary_key
        self.marker_key = marker_key


class CorruptRecordError(BackendError):
    """A stored record could not be decoded."""

    pass

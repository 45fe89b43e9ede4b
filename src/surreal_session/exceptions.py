"""
SurrealDB Session Exceptions.

Custom exception hierarchy for the session core.
"""

from typing import Any


class SurrealDBError(Exception):
    """Base exception for all SurrealDB session errors."""

    def __init__(self, message: str, code: int | None = None):
        self.message = message
        self.code = code
        super().__init__(message)


class ConnectionError(SurrealDBError):
    """Raised when the transport is unavailable or has been torn down."""

    pass


class TimeoutError(ConnectionError):
    """Raised when a transport gives up waiting for a response."""

    pass


class RPCError(SurrealDBError):
    """Raised when the server reports failure for a specific request."""

    def __init__(self, code: int, message: str, data: Any = None):
        self.data = data
        super().__init__(message, code)

    def __str__(self) -> str:
        text = f"RPC error ({self.code}): {self.message}"
        if self.data is not None:
            text += f" - {self.data}"
        return text


class InvalidRecordID(SurrealDBError, ValueError):
    """Raised when record identifier text is malformed."""

    def __init__(self, reason: str, original: str):
        self.reason = reason
        self.original = original
        super().__init__(f"Invalid record ID '{original}': {reason}")


class SerializationError(SurrealDBError):
    """Raised when a typed value cannot be represented as a SurrealValue."""

    pass


class DeserializationError(SurrealDBError):
    """Raised when a SurrealValue does not fit the requested type."""

    def __init__(self, message: str, expected: str | None = None, actual: str | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class AuthenticationError(SurrealDBError):
    """Raised when authentication returns something other than a token."""

    pass


class InvalidResponseError(SurrealDBError):
    """Raised when the server result has an unexpected shape."""

    pass


class UnsupportedOperationError(SurrealDBError):
    """Raised when the transport cannot perform the requested operation."""

    pass


class LiveQueryError(SurrealDBError):
    """Raised when a live query subscription cannot be registered."""

    pass

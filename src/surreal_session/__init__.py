"""
SurrealDB Session - The session core of a SurrealDB client.

Provides request/response correlation and live query routing on top of a
pluggable transport.

Supports:
- Dynamic wire values with typed conversion through pydantic
- Record identifiers ("table:id")
- Concurrent RPC calls answered out of order
- Live query notification streams (WebSocket only)
- HTTP (stateless) and WebSocket (stateful) transports
"""

from .client import SurrealDB
from .session import RPCSession
from .record_id import RecordID
from .value import SurrealValue, ValueKind
from .transport import HTTPTransport, Transport, TransportConfig, WebSocketTransport
from .streaming import LiveQueryStream, NotificationChannel, SubscriptionRouter
from .protocol.rpc import (
    LiveAction,
    LiveQueryNotification,
    RPCErrorPayload,
    RPCMethod,
    RPCRequest,
    RPCResponse,
)
from .types import QueryResponse, QueryResult, ResponseStatus
from .exceptions import (
    SurrealDBError,
    ConnectionError,
    TimeoutError,
    RPCError,
    InvalidRecordID,
    SerializationError,
    DeserializationError,
    AuthenticationError,
    InvalidResponseError,
    UnsupportedOperationError,
    LiveQueryError,
)

__version__ = "0.1.0"
__all__ = [
    # Client
    "SurrealDB",
    "RPCSession",
    # Values
    "RecordID",
    "SurrealValue",
    "ValueKind",
    # Transports
    "Transport",
    "TransportConfig",
    "HTTPTransport",
    "WebSocketTransport",
    # Streaming
    "LiveQueryStream",
    "NotificationChannel",
    "SubscriptionRouter",
    # Protocol
    "LiveAction",
    "LiveQueryNotification",
    "RPCErrorPayload",
    "RPCMethod",
    "RPCRequest",
    "RPCResponse",
    # Response Types
    "QueryResponse",
    "QueryResult",
    "ResponseStatus",
    # Exceptions
    "SurrealDBError",
    "ConnectionError",
    "TimeoutError",
    "RPCError",
    "InvalidRecordID",
    "SerializationError",
    "DeserializationError",
    "AuthenticationError",
    "InvalidResponseError",
    "UnsupportedOperationError",
    "LiveQueryError",
]

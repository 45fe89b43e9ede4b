"""
SurrealDB RPC Protocol Implementation.

Handles the JSON-RPC style messaging format used by SurrealDB.
Supports both JSON and CBOR serialization formats.
"""

import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from ..exceptions import DeserializationError
from ..value import SurrealValue
from . import cbor as cbor_module


@dataclass
class RPCRequest:
    """
    RPC Request message format.

    Attributes:
        id: Unique request identifier for response matching
        method: RPC method name (query, select, create, etc.)
        params: Ordered method parameters
    """

    id: str
    method: str
    params: list[SurrealValue] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for serialization."""
        return {
            "id": self.id,
            "method": self.method,
            "params": [param.to_python() for param in self.params],
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict())

    def to_cbor(self) -> bytes:
        """Serialize to CBOR bytes."""
        return cbor_module.encode(self.to_dict())


@dataclass
class RPCErrorPayload:
    """
    RPC Error format.

    Attributes:
        code: Error code
        message: Error message
        data: Optional additional error data
    """

    code: int
    message: str
    data: SurrealValue | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RPCErrorPayload":
        """Create from dictionary."""
        extra = data.get("data")
        return cls(
            code=int(data.get("code", -1)),
            message=str(data.get("message", "Unknown error")),
            data=SurrealValue.from_python(extra) if extra is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data.to_python()
        return payload


@dataclass
class RPCResponse:
    """
    RPC Response message format.

    Attributes:
        id: Request identifier this response matches
        result: Result data (if successful)
        error: Error information (if failed)

    A response with neither result nor error is a success with a null result.
    """

    id: str | None
    result: SurrealValue | None = None
    error: RPCErrorPayload | None = None

    @property
    def is_error(self) -> bool:
        """Check if response is an error."""
        return self.error is not None

    @property
    def is_success(self) -> bool:
        """Check if response is successful."""
        return self.error is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RPCResponse":
        """Parse from dictionary."""
        error = None
        if isinstance(data.get("error"), dict):
            error = RPCErrorPayload.from_dict(data["error"])

        result = None
        if "result" in data:
            result = SurrealValue.from_python(data["result"])

        msg_id = data.get("id")
        return cls(
            id=str(msg_id) if msg_id is not None else None,
            result=result,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id}
        if self.result is not None:
            payload["result"] = self.result.to_python()
        if self.error is not None:
            payload["error"] = self.error.to_dict()
        return payload

    @classmethod
    def from_json(cls, json_str: str | bytes) -> "RPCResponse":
        """Parse from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def from_cbor(cls, cbor_data: bytes) -> "RPCResponse":
        """Parse from CBOR bytes."""
        return cls.from_dict(cbor_module.decode(cbor_data))


class LiveAction(StrEnum):
    """Live query action types."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CLOSE = "CLOSE"


@dataclass
class LiveQueryNotification:
    """
    Live query notification.

    Attributes:
        query_id: Live query UUID the notification belongs to
        action: CREATE, UPDATE, DELETE or CLOSE
        result: The affected record (null for CLOSE)
    """

    query_id: str
    action: LiveAction
    result: SurrealValue = field(default_factory=SurrealValue.null)

    @property
    def is_close(self) -> bool:
        return self.action is LiveAction.CLOSE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LiveQueryNotification":
        """
        Parse from a push message body.

        The server sends the live query id under ``id``; ``queryId`` is
        accepted as well. Actions are matched case-insensitively.

        Raises:
            DeserializationError: If the id or action is missing or unknown.
        """
        query_id = data.get("id", data.get("queryId"))
        if query_id is None:
            raise DeserializationError("Live notification without a query id", expected="id", actual="missing")

        action = data.get("action")
        try:
            live_action = LiveAction(str(action).upper())
        except ValueError as e:
            raise DeserializationError(
                f"Unknown live query action: {action!r}", expected="LiveAction", actual=str(action)
            ) from e

        return cls(
            query_id=str(query_id),
            action=live_action,
            result=SurrealValue.from_python(data.get("result")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.query_id, "action": self.action.value, "result": self.result.to_python()}


def parse_message(message: Any) -> RPCResponse | LiveQueryNotification | None:
    """
    Classify a decoded frame from a push-capable transport.

    Returns an RPCResponse for id-tagged replies, a LiveQueryNotification for
    live query pushes (top-level or wrapped in ``result``), or None for
    anything else.
    """
    if not isinstance(message, dict):
        return None

    if "action" in message:
        return LiveQueryNotification.from_dict(message)

    inner = message.get("result")
    if message.get("id") is None and isinstance(inner, dict) and "action" in inner:
        return LiveQueryNotification.from_dict(inner)

    if message.get("id") is not None:
        return RPCResponse.from_dict(message)

    return None


# RPC Method names as constants
class RPCMethod:
    """RPC method name constants."""

    # Authentication
    SIGNIN = "signin"
    SIGNUP = "signup"
    AUTHENTICATE = "authenticate"
    INVALIDATE = "invalidate"
    INFO = "info"

    # Connection
    USE = "use"
    PING = "ping"
    VERSION = "version"

    # CRUD
    SELECT = "select"
    CREATE = "create"
    INSERT = "insert"
    UPDATE = "update"
    UPSERT = "upsert"
    MERGE = "merge"
    PATCH = "patch"
    DELETE = "delete"
    RELATE = "relate"

    # Query
    QUERY = "query"
    RUN = "run"
    GRAPHQL = "graphql"

    # Live Queries (WebSocket only)
    LIVE = "live"
    KILL = "kill"

    # Variables (WebSocket only)
    LET = "let"
    UNSET = "unset"

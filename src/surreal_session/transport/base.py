"""
Base Transport Interface for SurrealDB Session.

Defines the capability every transport (WebSocket, HTTP, test doubles) must
provide to the session core.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal, Self

from ..protocol.rpc import RPCRequest, RPCResponse
from ..streaming.live import NotificationChannel


@dataclass(frozen=True)
class TransportConfig:
    """
    Immutable transport configuration.

    The session core threads this through without interpreting it.

    Attributes:
        request_timeout: Seconds to wait for a response to one request
        connection_timeout: Seconds to wait for the channel to open
        protocol: Serialization protocol ("json" or "cbor")
    """

    request_timeout: float = 30.0
    connection_timeout: float = 10.0
    protocol: Literal["json", "cbor"] = "cbor"

    def __post_init__(self) -> None:
        if self.protocol not in ("json", "cbor"):
            raise ValueError(f"Invalid protocol '{self.protocol}'. Must be 'json' or 'cbor'.")


class Transport(ABC):
    """
    Abstract base class for SurrealDB transports.

    ``send`` may be called concurrently for distinct request ids; responses may
    complete in any order. ``notifications`` keeps delivering live query pushes
    independently of request/response traffic.
    """

    # Whether the server can push live query notifications over this transport
    supports_live_queries = True

    def __init__(self, url: str, config: TransportConfig | None = None):
        """
        Initialize transport parameters.

        Args:
            url: SurrealDB server URL
            config: Transport configuration
        """
        self.url = url.rstrip("/")
        self.config = config or TransportConfig()
        self._connected = False
        self._notifications = NotificationChannel()

    @property
    def is_connected(self) -> bool:
        """Check if the channel is established."""
        return self._connected

    @property
    def notifications(self) -> NotificationChannel:
        """Live query notifications pushed by the server."""
        return self._notifications

    def use(self, namespace: str, database: str) -> None:
        """Record the selected namespace/database. Stateless transports override this."""

    def set_auth_token(self, token: str | None) -> None:
        """Record the session token. Stateless transports override this."""

    @abstractmethod
    async def connect(self) -> Self:
        """Establish the channel. Returns self for fluent API."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Tear down the channel; pending sends fail afterwards."""
        ...

    @abstractmethod
    async def send(self, request: RPCRequest) -> RPCResponse:
        """
        Send one request and wait for its matched response.

        Args:
            request: The RPC request to send

        Returns:
            The response carrying the same id

        Raises:
            ConnectionError: If the channel is unavailable
        """
        ...

    # Context manager support

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.disconnect()

"""
HTTP Transport Implementation for SurrealDB Session.

Provides stateless HTTP-based request/response transport, ideal for
microservices and serverless. Live queries are not available over HTTP.
"""

import json
import logging
from typing import Any, Self

import httpx

from .base import Transport, TransportConfig
from ..exceptions import ConnectionError, TimeoutError
from ..protocol import cbor as cbor_module
from ..protocol.rpc import RPCRequest, RPCResponse

logger = logging.getLogger(__name__)


class HTTPTransport(Transport):
    """
    HTTP-based transport to SurrealDB.

    Each request is an independent POST to ``/rpc``. Namespace, database and
    the bearer token travel as headers on every request.
    """

    supports_live_queries = False

    def __init__(self, url: str, config: TransportConfig | None = None):
        """
        Initialize HTTP transport.

        Args:
            url: SurrealDB HTTP URL (e.g., "http://localhost:8000")
            config: Transport configuration
        """
        # Normalize URL to HTTP if needed
        if url.startswith("ws://"):
            url = url.replace("ws://", "http://", 1)
        elif url.startswith("wss://"):
            url = url.replace("wss://", "https://", 1)
        if url.rstrip("/").endswith("/rpc"):
            url = url.rstrip("/")[: -len("/rpc")]

        super().__init__(url, config)
        self.namespace: str | None = None
        self.database: str | None = None
        self._token: str | None = None
        self._client: httpx.AsyncClient | None = None
        # HTTP never pushes notifications
        self._notifications.finish()

    @property
    def headers(self) -> dict[str, str]:
        """Build request headers based on protocol setting."""
        if self.config.protocol == "cbor":
            content_type = "application/cbor"
        else:
            content_type = "application/json"

        h = {
            "Accept": content_type,
            "Content-Type": content_type,
        }
        if self.namespace:
            h["Surreal-NS"] = self.namespace
        if self.database:
            h["Surreal-DB"] = self.database
        if self._token:
            h["Authorization"] = f"Bearer {self._token}"
        return h

    def use(self, namespace: str, database: str) -> None:
        """Set the namespace and database sent with subsequent requests."""
        self.namespace = namespace
        self.database = database

    def set_auth_token(self, token: str | None) -> None:
        """Set (or clear) the bearer token sent with subsequent requests."""
        self._token = token

    async def connect(self) -> Self:
        """Create the HTTP client. Returns self for fluent API."""
        if self._connected:
            return self

        self._client = httpx.AsyncClient(
            base_url=self.url,
            timeout=httpx.Timeout(self.config.request_timeout, connect=self.config.connection_timeout),
        )
        self._connected = True
        logger.info(f"HTTP transport ready for {self.url}")
        return self

    async def disconnect(self) -> None:
        """Close HTTP client."""
        self._connected = False
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send(self, request: RPCRequest) -> RPCResponse:
        """
        Send RPC request via HTTP POST to /rpc endpoint.

        Raises:
            ConnectionError: If not connected or the request fails
            TimeoutError: If the request times out
            DeserializationError: If the reply cannot be decoded into a SurrealValue
        """
        if not self._client or not self._connected:
            raise ConnectionError("Not connected. Call connect() first.")

        if self.config.protocol == "cbor":
            content: str | bytes = request.to_cbor()
        else:
            content = request.to_json()

        try:
            response = await self._client.post("/rpc", content=content, headers=self.headers)
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Request timed out after {self.config.request_timeout}s") from e
        except httpx.RequestError as e:
            raise ConnectionError(f"Request failed: {e}") from e

        try:
            message = self._decode(response.content)
        except cbor_module.DECODE_ERRORS as e:
            if response.is_error:
                raise self._http_error(response) from e
            raise ConnectionError(f"Undecodable response: {e}") from e

        if not isinstance(message, dict):
            if response.is_error:
                raise self._http_error(response)
            raise ConnectionError(f"Unexpected response body: {type(message).__name__}", code=response.status_code)
        rpc_response = RPCResponse.from_dict(message)

        # HTTP is strictly request/response, so the reply belongs to this request
        if rpc_response.id is None:
            rpc_response.id = request.id
        return rpc_response

    @staticmethod
    def _http_error(response: httpx.Response) -> ConnectionError:
        return ConnectionError(f"HTTP error: {response.status_code} - {response.text}", code=response.status_code)

    def _decode(self, content: bytes) -> Any:
        if self.config.protocol == "cbor":
            try:
                return cbor_module.decode(content)
            except cbor_module.DECODE_ERRORS:
                # Server may answer errors in JSON
                return json.loads(content)
        return json.loads(content)

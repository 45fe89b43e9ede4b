"""
WebSocket Transport Implementation for SurrealDB Session.

Provides a persistent WebSocket channel that carries both request/response
traffic and live query push notifications.
"""

import asyncio
import json
import logging
from typing import Any, Self

import aiohttp
from aiohttp import ClientWSTimeout

from .base import Transport, TransportConfig
from ..exceptions import ConnectionError, DeserializationError, TimeoutError
from ..protocol import cbor as cbor_module
from ..protocol.rpc import LiveQueryNotification, RPCRequest, RPCResponse, parse_message
from ..streaming.live import NotificationChannel

logger = logging.getLogger(__name__)


class WebSocketTransport(Transport):
    """
    WebSocket-based transport to SurrealDB.

    A background reader task matches incoming responses to the futures of
    in-flight sends by request id and pushes live query notifications onto
    ``notifications``. Reconnection is not attempted; after a drop the owner
    must call ``connect()`` again.
    """

    def __init__(self, url: str, config: TransportConfig | None = None):
        """
        Initialize WebSocket transport.

        Args:
            url: SurrealDB WebSocket URL (e.g., "ws://localhost:8000")
            config: Transport configuration
        """
        # Normalize URL to WebSocket
        if url.startswith("http://"):
            url = url.replace("http://", "ws://", 1)
        elif url.startswith("https://"):
            url = url.replace("https://", "wss://", 1)

        # Ensure /rpc suffix
        if not url.rstrip("/").endswith("/rpc"):
            url = url.rstrip("/") + "/rpc"

        super().__init__(url, config)

        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._pending: dict[str, asyncio.Future[RPCResponse]] = {}
        self._reader_task: asyncio.Task[None] | None = None
        self._closing = False

    async def connect(self) -> Self:
        """Establish WebSocket connection. Returns self for fluent API."""
        if self._connected:
            return self

        self._closing = False
        self._notifications = NotificationChannel()
        self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(connect=self.config.connection_timeout))

        try:
            # SurrealDB 2.0+ requires the payload format as subprotocol
            self._ws = await self._session.ws_connect(
                self.url,
                timeout=ClientWSTimeout(ws_close=self.config.request_timeout),
                protocols=[self.config.protocol],
                autoping=True,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await self._cleanup()
            raise ConnectionError(f"WebSocket connection failed: {e}") from e

        self._connected = True
        self._reader_task = asyncio.create_task(self._read_loop())
        logger.info(f"WebSocket connected to {self.url}")
        return self

    async def disconnect(self) -> None:
        """Close WebSocket connection."""
        self._closing = True
        await self._cleanup()
        logger.info(f"WebSocket disconnected from {self.url}")

    async def _cleanup(self) -> None:
        """Clean up connection resources."""
        self._connected = False

        # Cancel reader task
        if self._reader_task and self._reader_task is not asyncio.current_task():
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
        self._reader_task = None

        self._fail_pending("Connection closed")
        self._notifications.finish()

        # Close WebSocket
        if self._ws:
            await self._ws.close()
            self._ws = None

        # Close session
        if self._session:
            await self._session.close()
            self._session = None

    def _fail_pending(self, reason: str) -> None:
        """Fail all in-flight sends."""
        for future in self._pending.values():
            if not future.done():
                future.set_exception(ConnectionError(reason))
        self._pending.clear()

    async def _read_loop(self) -> None:
        """Background task to read WebSocket messages."""
        if not self._ws:
            return

        try:
            async for msg in self._ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._handle_frame(msg.data, binary=False)
                elif msg.type == aiohttp.WSMsgType.BINARY:
                    self._handle_frame(msg.data, binary=True)
                elif msg.type in (aiohttp.WSMsgType.ERROR, aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.CLOSE):
                    break
        finally:
            if not self._closing:
                logger.warning(f"WebSocket connection to {self.url} lost")
                self._connected = False
                self._fail_pending("Connection lost")
                self._notifications.finish()

    def _handle_frame(self, data: str | bytes, binary: bool) -> None:
        """Decode one frame (CBOR for binary, JSON for text) and dispatch it."""
        try:
            message = cbor_module.decode(data) if binary else json.loads(data)  # type: ignore[arg-type]
        except cbor_module.DECODE_ERRORS as e:
            logger.warning(f"Dropping undecodable frame: {e}")
            return

        self._process_message(message)

    def _process_message(self, message: Any) -> None:
        """Process a decoded message (from JSON or CBOR)."""
        try:
            parsed = parse_message(message)
        except (DeserializationError, ValueError, TypeError) as e:
            self._fail_malformed(message, e)
            return

        if isinstance(parsed, LiveQueryNotification):
            self._notifications.push(parsed)
        elif isinstance(parsed, RPCResponse):
            future = self._pending.pop(parsed.id, None) if parsed.id is not None else None
            if future is None or future.done():
                logger.debug(f"Discarding response for unknown request {parsed.id}")
                return
            future.set_result(parsed)
        else:
            logger.debug("Ignoring unrecognised message")

    def _fail_malformed(self, message: Any, error: Exception) -> None:
        """Fail the request a malformed reply belongs to, or drop the message."""
        request_id = message.get("id") if isinstance(message, dict) else None
        future = self._pending.pop(str(request_id), None) if request_id is not None else None
        if future is None or future.done():
            logger.warning(f"Dropping malformed message: {error}")
            return

        if not isinstance(error, DeserializationError):
            cause = error
            error = DeserializationError(f"Malformed response: {cause}", expected="RPCResponse", actual="malformed")
            error.__cause__ = cause
        logger.warning(f"Malformed response for request {request_id}: {error}")
        future.set_exception(error)

    async def send(self, request: RPCRequest) -> RPCResponse:
        """
        Send RPC request via WebSocket.

        Raises:
            ConnectionError: If not connected or the send fails
            TimeoutError: If request times out
            DeserializationError: If the reply cannot be decoded into a SurrealValue
        """
        if not self._ws or not self._connected:
            raise ConnectionError("Not connected. Call connect() first.")
        if request.id in self._pending:
            raise ConnectionError(f"Request id {request.id} is already in flight")

        # Create future for response
        loop = asyncio.get_running_loop()
        future: asyncio.Future[RPCResponse] = loop.create_future()
        self._pending[request.id] = future

        try:
            if self.config.protocol == "cbor":
                await self._ws.send_bytes(request.to_cbor())
            else:
                await self._ws.send_str(request.to_json())

            return await asyncio.wait_for(future, timeout=self.config.request_timeout)

        except asyncio.TimeoutError as e:
            raise TimeoutError(f"Request timed out after {self.config.request_timeout}s") from e
        except ConnectionError:
            raise
        except (aiohttp.ClientError, OSError, RuntimeError) as e:
            raise ConnectionError(f"Request failed: {e}") from e
        finally:
            self._pending.pop(request.id, None)

"""
RPC Session Engine.

Issues request ids, tracks in-flight requests and correlates each response to
the caller that is waiting for it.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, TypeVar

from .exceptions import ConnectionError, DeserializationError, RPCError
from .protocol.rpc import RPCRequest, RPCResponse
from .transport.base import Transport
from .value import SurrealValue

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RPCSession:
    """
    Correlates concurrent RPC calls with out-of-order responses.

    The session exclusively owns the pending table (request id → future).
    Every mutation of that table runs synchronously on the event loop between
    awaits, so the loop is its single writer.

    Usage:
        session = RPCSession(transport)
        await session.connect()
        user = await session.call("select", [RecordID("users", "john")])
        await session.disconnect()
    """

    def __init__(self, transport: Transport):
        """
        Initialize the session.

        Args:
            transport: Transport used to carry requests
        """
        self.transport = transport
        self._request_id = 0
        self._pending: dict[str, asyncio.Future[RPCResponse]] = {}
        self._send_tasks: set[asyncio.Task[RPCResponse]] = set()

    @property
    def is_connected(self) -> bool:
        """Connection state as reported by the transport."""
        return self.transport.is_connected

    @property
    def pending_ids(self) -> list[str]:
        """Ids of requests still waiting for a response."""
        return list(self._pending.keys())

    def _next_request_id(self) -> str:
        """Generate the next request id not currently in flight."""
        while True:
            self._request_id += 1
            request_id = str(self._request_id)
            if request_id not in self._pending:
                return request_id

    async def connect(self) -> None:
        """Connect the underlying transport."""
        await self.transport.connect()

    async def disconnect(self) -> None:
        """Fail every pending call with ConnectionError, then disconnect the transport."""
        self.fail_pending("disconnected")
        await self.transport.disconnect()

    def fail_pending(self, reason: str) -> None:
        """Resolve every pending call as failed and clear the table."""
        pending = list(self._pending.values())
        self._pending.clear()
        for future in pending:
            if not future.done():
                future.set_exception(ConnectionError(reason))
        if pending:
            logger.debug(f"Failed {len(pending)} pending request(s): {reason}")

    async def call(self, method: str, params: Iterable[Any] | None = None) -> SurrealValue:
        """
        Execute one RPC call.

        Args:
            method: RPC method name
            params: Positional parameters; SurrealValue or anything
                ``SurrealValue.from_typed`` accepts

        Returns:
            The result value (null when the response carries neither result
            nor error)

        Raises:
            SerializationError: If a parameter cannot be converted
            ConnectionError: If disconnected or the transport fails
            RPCError: If the server reports an error for this request
            DeserializationError: If the reply cannot be decoded
        """
        values = [SurrealValue.from_typed(param) for param in params or []]

        if not self.transport.is_connected:
            raise ConnectionError("Not connected. Call connect() first.")

        request = RPCRequest(id=self._next_request_id(), method=method, params=values)
        future = self._register(request.id)
        logger.debug(f"RPC {method} -> request {request.id}")

        task = asyncio.create_task(self.transport.send(request))
        self._send_tasks.add(task)
        task.add_done_callback(lambda t, request_id=request.id: self._on_sent(request_id, t))

        response = await future

        if response.error is not None:
            raise RPCError(response.error.code, response.error.message, response.error.data)
        if response.result is None:
            return SurrealValue.null()
        return response.result

    async def call_typed(self, method: str, params: Iterable[Any] | None, type_: type[T] | Any) -> T:
        """Execute an RPC call and decode the result into ``type_``."""
        result = await self.call(method, params)
        return result.to_typed(type_)

    def resolve(self, response: RPCResponse) -> bool:
        """
        Settle the pending call matching ``response.id``.

        Returns:
            False if no call is waiting for that id (the response is dropped).
        """
        return self._settle(response.id, response)

    def _register(self, request_id: str) -> asyncio.Future[RPCResponse]:
        if request_id in self._pending:
            raise ConnectionError(f"Request id {request_id} is already pending")
        future: asyncio.Future[RPCResponse] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        return future

    def _on_sent(self, request_id: str, task: asyncio.Task[RPCResponse]) -> None:
        """Done callback of a transport send."""
        self._send_tasks.discard(task)

        if task.cancelled():
            self._settle(request_id, ConnectionError("Request cancelled"))
            return

        error = task.exception()
        if error is None:
            self._settle(request_id, task.result())
        elif isinstance(error, ConnectionError | DeserializationError):
            self._settle(request_id, error)
        else:
            failure = ConnectionError(f"Request failed: {error}")
            failure.__cause__ = error
            self._settle(request_id, failure)

    def _settle(self, request_id: str | None, outcome: RPCResponse | Exception) -> bool:
        future = self._pending.pop(request_id, None) if request_id is not None else None
        if future is None or future.done():
            logger.debug(f"Discarding late response for request {request_id}")
            return False

        if isinstance(outcome, Exception):
            future.set_exception(outcome)
        else:
            future.set_result(outcome)
        return True

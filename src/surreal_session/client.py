"""
SurrealDB client.

Ties a transport, the RPC session and the live query router together behind
the usual SurrealDB operations.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Self

from .exceptions import AuthenticationError, InvalidResponseError, UnsupportedOperationError
from .protocol.rpc import RPCMethod
from .record_id import RecordID
from .session import RPCSession
from .streaming.live import LiveQueryStream, SubscriptionRouter
from .transport.base import Transport, TransportConfig
from .transport.http import HTTPTransport
from .transport.websocket import WebSocketTransport
from .types import QueryResponse
from .value import SurrealValue, ValueKind

logger = logging.getLogger(__name__)

Target = RecordID | str


class SurrealDB:
    """
    Client for a SurrealDB server.

    Usage:
        # WebSocket (stateful, live queries)
        async with SurrealDB.ws("ws://localhost:8000") as db:
            await db.signin({"user": "root", "pass": "root"})
            await db.use("test", "test")
            john = await db.select(RecordID("users", "john"), as_type=User)

            query_id, stream = await db.live("users")
            async for notification in stream:
                print(notification.action, notification.result)

        # HTTP (stateless)
        async with SurrealDB.http("http://localhost:8000") as db:
            ...
    """

    def __init__(self, transport: Transport):
        """
        Initialize the client.

        Args:
            transport: Transport to carry requests and notifications
        """
        self.transport = transport
        self.session = RPCSession(transport)
        self.router = SubscriptionRouter()
        self.namespace: str | None = None
        self.database: str | None = None
        self._token: str | None = None
        self._router_task: asyncio.Task[None] | None = None

    @classmethod
    def ws(cls, url: str, config: TransportConfig | None = None) -> "SurrealDB":
        """Create a client over a WebSocket transport (stateful)."""
        return cls(WebSocketTransport(url, config))

    @classmethod
    def http(cls, url: str, config: TransportConfig | None = None) -> "SurrealDB":
        """Create a client over an HTTP transport (stateless)."""
        return cls(HTTPTransport(url, config))

    # Connection management

    @property
    def is_connected(self) -> bool:
        """Check if the transport is connected."""
        return self.transport.is_connected

    @property
    def token(self) -> str | None:
        """Get the current authentication token."""
        return self._token

    async def connect(self) -> Self:
        """Connect and start routing live query notifications. Returns self for fluent API."""
        await self.session.connect()
        self._router_task = asyncio.create_task(self._route_notifications())
        return self

    async def _route_notifications(self) -> None:
        await self.router.run(self.transport.notifications)
        # Transport stopped pushing (closed or lost): no stream can receive more
        self.router.finish_all()

    async def disconnect(self) -> None:
        """
        Disconnect from the server.

        Pending calls fail with ConnectionError and every live query stream is
        finished.
        """
        if self._router_task:
            self._router_task.cancel()
            try:
                await self._router_task
            except asyncio.CancelledError:
                pass
            self._router_task = None

        self.router.finish_all()
        await self.session.disconnect()

    async def close(self) -> None:
        """Alias of ``disconnect()``."""
        await self.disconnect()

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        return await self.connect()

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.disconnect()

    # Low-level access

    async def rpc(self, method: str, params: list[Any] | None = None) -> SurrealValue:
        """
        Execute an RPC call.

        Raises:
            RPCError: If the server reports an error
            ConnectionError: If the transport fails
        """
        return await self.session.call(method, params)

    async def ping(self) -> None:
        """Check that the server answers."""
        await self.rpc(RPCMethod.PING)

    async def version(self) -> str:
        """Get SurrealDB server version."""
        result = await self.rpc(RPCMethod.VERSION)
        if result.kind is not ValueKind.STRING:
            raise InvalidResponseError(f"Expected string version, got {result}")
        return str(result.value)

    async def use(self, namespace: str, database: str) -> None:
        """
        Set the namespace and database to use.

        Args:
            namespace: Target namespace
            database: Target database
        """
        await self.rpc(RPCMethod.USE, [namespace, database])
        self.namespace = namespace
        self.database = database
        self.transport.use(namespace, database)

    # Authentication

    async def signin(self, credentials: Mapping[str, Any] | Any) -> str:
        """
        Sign in and keep the returned token.

        Args:
            credentials: Credential object passed through as-is
                (e.g. ``{"user": "root", "pass": "root"}``)

        Returns:
            The authentication token
        """
        result = await self.rpc(RPCMethod.SIGNIN, [credentials])
        return self._store_token(result)

    async def signup(self, credentials: Mapping[str, Any] | Any) -> str:
        """Sign up a record access user and keep the returned token."""
        result = await self.rpc(RPCMethod.SIGNUP, [credentials])
        return self._store_token(result)

    async def authenticate(self, token: str) -> None:
        """Authenticate using a previously obtained token."""
        await self.rpc(RPCMethod.AUTHENTICATE, [token])
        self._token = token
        self.transport.set_auth_token(token)

    async def invalidate(self) -> None:
        """Invalidate the current authentication session."""
        await self.rpc(RPCMethod.INVALIDATE)
        self._token = None
        self.transport.set_auth_token(None)

    async def info(self, as_type: Any = None) -> Any:
        """Get information about the authenticated user."""
        return self._decode(await self.rpc(RPCMethod.INFO), as_type)

    def _store_token(self, result: SurrealValue) -> str:
        if result.kind is not ValueKind.STRING:
            raise AuthenticationError(f"Expected token string, got {result}")
        self._token = str(result.value)
        self.transport.set_auth_token(self._token)
        return self._token

    # Variables (WebSocket only)

    async def let(self, name: str, value: Any) -> None:
        """Set a session variable."""
        self._require_live_transport("Variables")
        await self.rpc(RPCMethod.LET, [name, value])

    async def unset(self, name: str) -> None:
        """Remove a session variable."""
        self._require_live_transport("Variables")
        await self.rpc(RPCMethod.UNSET, [name])

    # Query methods

    async def query(self, sql: str, variables: Mapping[str, Any] | None = None) -> QueryResponse:
        """
        Execute a SurrealQL query.

        Args:
            sql: SurrealQL query string
            variables: Query variables

        Returns:
            QueryResponse containing results for each statement
        """
        params: list[Any] = [sql]
        if variables is not None:
            params.append(dict(variables))
        result = await self.rpc(RPCMethod.QUERY, params)
        if result.kind is not ValueKind.ARRAY:
            raise InvalidResponseError(f"Expected array of results, got {result}")
        return QueryResponse.from_rpc_result(result)

    async def select(self, target: Target, as_type: Any = None) -> Any:
        """
        Select all records from a table or a specific record.

        Args:
            target: Table name or record ID
            as_type: Optional type to decode the result into
        """
        return self._decode(await self.rpc(RPCMethod.SELECT, [target]), as_type)

    async def create(self, target: Target, data: Any = None, as_type: Any = None) -> Any:
        """Create a new record."""
        return self._decode(await self.rpc(RPCMethod.CREATE, self._with_data(target, data)), as_type)

    async def insert(self, table: str, data: Any, as_type: Any = None) -> Any:
        """Insert one or more records."""
        return self._decode(await self.rpc(RPCMethod.INSERT, [table, data]), as_type)

    async def update(self, target: Target, data: Any = None, as_type: Any = None) -> Any:
        """Update record(s), replacing all fields."""
        return self._decode(await self.rpc(RPCMethod.UPDATE, self._with_data(target, data)), as_type)

    async def upsert(self, target: Target, data: Any, as_type: Any = None) -> Any:
        """Create the record(s) if missing, update otherwise."""
        return self._decode(await self.rpc(RPCMethod.UPSERT, [target, data]), as_type)

    async def merge(self, target: Target, data: Any, as_type: Any = None) -> Any:
        """Merge data into record(s), updating only specified fields."""
        return self._decode(await self.rpc(RPCMethod.MERGE, [target, data]), as_type)

    async def patch(self, target: Target, patches: list[dict[str, Any]], as_type: Any = None) -> Any:
        """Apply JSON Patch operations to record(s)."""
        return self._decode(await self.rpc(RPCMethod.PATCH, [target, patches]), as_type)

    async def delete(self, target: Target, as_type: Any = None) -> Any:
        """Delete record(s)."""
        return self._decode(await self.rpc(RPCMethod.DELETE, [target]), as_type)

    async def relate(
        self,
        from_record: Target,
        relation: str,
        to_record: Target,
        data: Any = None,
        as_type: Any = None,
    ) -> Any:
        """Create a graph relationship between records."""
        params: list[Any] = [from_record, relation, to_record]
        if data is not None:
            params.append(data)
        return self._decode(await self.rpc(RPCMethod.RELATE, params), as_type)

    async def run(
        self,
        function: str,
        arguments: list[Any] | None = None,
        version: str | None = None,
        as_type: Any = None,
    ) -> Any:
        """
        Call a database function.

        Args:
            function: Function name; names without a ``::`` namespace are
                custom functions and get the ``fn::`` prefix
            arguments: Positional function arguments
            version: Version of a packaged function
            as_type: Optional type to decode the result into
        """
        name = function if "::" in function else f"fn::{function}"
        params: list[Any] = [name]
        if version is not None or arguments is not None:
            params.append(version)
        if arguments is not None:
            params.append(list(arguments))
        return self._decode(await self.rpc(RPCMethod.RUN, params), as_type)

    async def graphql(self, query: str, as_type: Any = None) -> Any:
        """Execute a GraphQL query."""
        return self._decode(await self.rpc(RPCMethod.GRAPHQL, [query]), as_type)

    # Live queries (WebSocket only)

    async def live(self, table: str, diff: bool = False) -> tuple[str, LiveQueryStream]:
        """
        Start a live query on ``table``.

        The stream is subscribed once the ``live`` reply has been received.
        A notification the server pushes before that reply is routed to an
        unknown id and dropped. Callers that cannot miss early changes should
        re-read the table after this returns.

        Returns:
            The live query id and the stream of its notifications
        """
        self._require_live_transport("Live queries")
        result = await self.rpc(RPCMethod.LIVE, [table, diff])
        if result.kind is not ValueKind.STRING:
            raise InvalidResponseError(f"Expected query ID string, got {result}")

        query_id = str(result.value)
        logger.info(f"Live query {query_id} started on {table}")
        return query_id, self.router.subscribe(query_id)

    async def kill(self, query_id: str) -> None:
        """Stop a live query and finish its stream."""
        self._require_live_transport("Live queries")
        try:
            await self.rpc(RPCMethod.KILL, [query_id])
        finally:
            self.router.unsubscribe(query_id)

    def subscribe_live(self, query_id: str) -> LiveQueryStream:
        """
        Attach a stream to an existing live query id.

        Raises:
            LiveQueryError: If the id already has a subscriber
        """
        self._require_live_transport("Live queries")
        return self.router.subscribe(query_id)

    @property
    def live_queries(self) -> list[str]:
        """Get list of subscribed live query IDs."""
        return self.router.active_queries

    # Helpers

    def _require_live_transport(self, feature: str) -> None:
        if not self.transport.supports_live_queries:
            raise UnsupportedOperationError(f"{feature} are only supported with WebSocket transport")

    @staticmethod
    def _with_data(target: Target, data: Any) -> list[Any]:
        return [target] if data is None else [target, data]

    @staticmethod
    def _decode(value: SurrealValue, as_type: Any) -> Any:
        return value if as_type is None else value.to_typed(as_type)

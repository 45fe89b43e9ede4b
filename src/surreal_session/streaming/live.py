"""
Live Query Routing Implementation.

Demultiplexes the transport's push notifications onto one async-iterable
stream per live query id.
"""

import asyncio
import logging
from collections.abc import AsyncIterable
from typing import Self

from ..exceptions import LiveQueryError
from ..protocol.rpc import LiveQueryNotification

logger = logging.getLogger(__name__)

# End-of-stream marker placed on the queue by finish()
_FINISHED = None


class NotificationChannel:
    """
    Unbounded queue of live notifications with a finish signal.

    Values are consumed with ``async for``; iteration ends once the channel is
    finished and every value queued before the finish has been consumed.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[LiveQueryNotification | None] = asyncio.Queue()
        self._finished = False

    @property
    def is_finished(self) -> bool:
        return self._finished

    def push(self, notification: LiveQueryNotification) -> bool:
        """Queue a notification. Returns False if the channel is already finished."""
        if self._finished:
            return False
        self._queue.put_nowait(notification)
        return True

    def finish(self) -> None:
        """End the channel. Safe to call more than once."""
        if self._finished:
            return
        self._finished = True
        self._queue.put_nowait(_FINISHED)

    # Async iterator protocol

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> LiveQueryNotification:
        if self._finished and self._queue.empty():
            raise StopAsyncIteration

        notification = await self._queue.get()
        if notification is _FINISHED:
            raise StopAsyncIteration
        return notification


class LiveQueryStream(NotificationChannel):
    """
    Notifications for a single live query.

    Usage:
        query_id, stream = await db.live("users")
        async for notification in stream:
            match notification.action:
                case LiveAction.CREATE:
                    print(f"New user: {notification.result}")
                case LiveAction.DELETE:
                    print(f"User removed: {notification.result}")
    """

    def __init__(self, query_id: str):
        super().__init__()
        self.query_id = query_id

    def __repr__(self) -> str:
        return f"LiveQueryStream(query_id={self.query_id!r}, finished={self.is_finished})"


class SubscriptionRouter:
    """
    Routes live notifications to the stream registered for their query id.

    The router exclusively owns its subscription table. Routing is strictly
    keyed by query id; a notification for an unknown id is dropped.
    """

    def __init__(self) -> None:
        self._streams: dict[str, LiveQueryStream] = {}

    def subscribe(self, query_id: str) -> LiveQueryStream:
        """
        Register a new stream for ``query_id``.

        Raises:
            LiveQueryError: If a stream is already registered for the id.
        """
        if query_id in self._streams:
            raise LiveQueryError(f"Live query {query_id} already has a subscriber")

        stream = LiveQueryStream(query_id)
        self._streams[query_id] = stream
        logger.debug(f"Subscribed to live query {query_id}")
        return stream

    def unsubscribe(self, query_id: str) -> None:
        """Finish and remove the stream for ``query_id``, if any."""
        stream = self._streams.pop(query_id, None)
        if stream is not None:
            stream.finish()
            logger.debug(f"Unsubscribed from live query {query_id}")

    def route(self, notification: LiveQueryNotification) -> bool:
        """
        Deliver a notification to its subscriber.

        A CLOSE notification is delivered and then ends the subscription.

        Returns:
            True if a subscriber received the notification.
        """
        stream = self._streams.get(notification.query_id)
        if stream is None:
            logger.debug(f"Dropping {notification.action} notification for unknown live query {notification.query_id}")
            return False

        stream.push(notification)
        if notification.is_close:
            self.unsubscribe(notification.query_id)
        return True

    def finish_all(self) -> None:
        """Finish every stream and clear the table (no CLOSE is synthesized)."""
        streams = list(self._streams.values())
        self._streams.clear()
        for stream in streams:
            stream.finish()
        if streams:
            logger.debug(f"Finished {len(streams)} live query stream(s)")

    async def run(self, notifications: AsyncIterable[LiveQueryNotification]) -> None:
        """Drain a transport's notification sequence until it ends."""
        async for notification in notifications:
            self.route(notification)

    def is_subscribed(self, query_id: str) -> bool:
        return query_id in self._streams

    @property
    def active_queries(self) -> list[str]:
        """Get list of subscribed live query IDs."""
        return list(self._streams.keys())

    @property
    def count(self) -> int:
        """Number of active subscriptions."""
        return len(self._streams)

"""
SurrealDB Session Streaming Module.

Provides live query notification routing.
"""

from .live import LiveQueryStream, NotificationChannel, SubscriptionRouter

__all__ = [
    "LiveQueryStream",
    "NotificationChannel",
    "SubscriptionRouter",
]

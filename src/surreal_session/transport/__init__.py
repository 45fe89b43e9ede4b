"""
SurrealDB Session Transport Module.

Provides the transport capability interface plus HTTP and WebSocket
implementations.
"""

from .base import Transport, TransportConfig
from .http import HTTPTransport
from .websocket import WebSocketTransport

__all__ = [
    "Transport",
    "TransportConfig",
    "HTTPTransport",
    "WebSocketTransport",
]

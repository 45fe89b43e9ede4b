"""
SurrealDB Session Protocol Module.

Implements the RPC envelopes for SurrealDB communication.
Supports both JSON and CBOR serialization formats.
"""

from .rpc import (
    LiveAction,
    LiveQueryNotification,
    RPCErrorPayload,
    RPCMethod,
    RPCRequest,
    RPCResponse,
    parse_message,
)
from .cbor import (
    DECODE_ERRORS as CBOR_DECODE_ERRORS,
    encode as cbor_encode,
    decode as cbor_decode,
)

__all__ = [
    # RPC
    "RPCRequest",
    "RPCResponse",
    "RPCErrorPayload",
    "RPCMethod",
    "LiveAction",
    "LiveQueryNotification",
    "parse_message",
    # CBOR
    "CBOR_DECODE_ERRORS",
    "cbor_encode",
    "cbor_decode",
]

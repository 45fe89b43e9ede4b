"""
CBOR Encoding/Decoding for SurrealDB Protocol.

Requests are plain wire values and encode without custom tags. Responses may
carry SurrealDB's semantic tags, which decode to Python values:

- TAG_NONE (6): None
- TAG_TABLE (7): table name string
- TAG_RECORDID (8): RecordID, from ``[table, id]`` or ``"table:id"``
- TAG_STRING_UUID (9): UUID
- TAG_STRING_DECIMAL (10): Decimal
- TAG_DATETIME (12): aware datetime, from ISO 8601 text or ``[seconds, nanos]``
- TAG_STRING_DURATION (14): duration string

Tags not listed decode to their untagged content.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

import cbor2

from ..record_id import RecordID

# SurrealDB Custom CBOR Tags
TAG_NONE = 6
TAG_TABLE = 7
TAG_RECORDID = 8
TAG_STRING_UUID = 9
TAG_STRING_DECIMAL = 10
TAG_DATETIME = 12
TAG_STRING_DURATION = 14

# Everything decode() raises for a malformed payload (InvalidRecordID is a ValueError)
DECODE_ERRORS: tuple[type[Exception], ...] = (cbor2.CBORError, ValueError, TypeError, EOFError, InvalidOperation)


def _record_id(value: Any) -> RecordID:
    if isinstance(value, list) and len(value) == 2:
        return RecordID(str(value[0]), str(value[1]))
    if isinstance(value, str):
        return RecordID.parse(value)
    raise ValueError(f"Malformed record id tag content: {value!r}")


def _datetime(value: Any) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, list) and len(value) == 2:
        seconds, nanos = value
        return datetime.fromtimestamp(seconds + nanos / 1_000_000_000, tz=UTC)
    raise ValueError(f"Malformed datetime tag content: {value!r}")


_TAG_DECODERS: dict[int, Callable[[Any], Any]] = {
    TAG_NONE: lambda value: None,
    TAG_TABLE: str,
    TAG_RECORDID: _record_id,
    TAG_STRING_UUID: UUID,
    TAG_STRING_DECIMAL: Decimal,
    TAG_DATETIME: _datetime,
    TAG_STRING_DURATION: str,
}


def _tag_hook(decoder: Any, tag: cbor2.CBORTag) -> Any:
    convert = _TAG_DECODERS.get(tag.tag)
    return convert(tag.value) if convert is not None else tag.value


def encode(data: Any) -> bytes:
    """
    Encode a plain wire value (dict, list, str, int, float, bool, None) to CBOR.

    Raises:
        TypeError: If ``data`` contains anything else
    """
    result: bytes = cbor2.dumps(data)
    return result


def decode(data: bytes) -> Any:
    """
    Decode CBOR bytes, resolving SurrealDB's semantic tags.

    Raises:
        One of DECODE_ERRORS if the payload is truncated or a tag is malformed.
    """
    return cbor2.loads(data, tag_hook=_tag_hook)

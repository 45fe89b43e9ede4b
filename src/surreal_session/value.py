"""
Dynamic value representation for the SurrealDB wire protocol.

``SurrealValue`` is a tagged union over the JSON-like values the protocol can
carry. Typed application values (pydantic models, dataclasses, plain Python
values) are converted through pydantic's JSON-mode serialization and then
classified into a variant; the reverse direction validates the plain value
with pydantic against the requested type.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import StrEnum
from typing import Any, Callable, TypeVar
from uuid import UUID

from pydantic import PydanticUserError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from .exceptions import DeserializationError, SerializationError
from .record_id import RecordID

T = TypeVar("T")

# Integer variant range (signed 64-bit)
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1


class ValueKind(StrEnum):
    """Variant tags of a SurrealValue."""

    NULL = "null"
    BOOL = "bool"
    INT = "int"
    DOUBLE = "double"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class SurrealValue:
    """
    A wire value: null, bool, int, double, string, array or object.

    Attributes:
        kind: The variant tag
        value: The payload (``None``, ``bool``, ``int``, ``float``, ``str``,
            ``tuple[SurrealValue, ...]`` or ``dict[str, SurrealValue]``)

    Two values are equal only if both kind and payload match, so
    ``SurrealValue.integer(1) != SurrealValue.double(1.0)``.
    """

    kind: ValueKind
    value: Any = None

    # Constructors

    @classmethod
    def null(cls) -> SurrealValue:
        return cls(ValueKind.NULL)

    @classmethod
    def boolean(cls, value: bool) -> SurrealValue:
        return cls(ValueKind.BOOL, bool(value))

    @classmethod
    def integer(cls, value: int) -> SurrealValue:
        return cls(ValueKind.INT, int(value))

    @classmethod
    def double(cls, value: float) -> SurrealValue:
        return cls(ValueKind.DOUBLE, float(value))

    @classmethod
    def string(cls, value: str) -> SurrealValue:
        return cls(ValueKind.STRING, str(value))

    @classmethod
    def array(cls, items: Iterable[SurrealValue]) -> SurrealValue:
        return cls(ValueKind.ARRAY, tuple(items))

    @classmethod
    def object(cls, fields: Mapping[str, SurrealValue]) -> SurrealValue:
        return cls(ValueKind.OBJECT, dict(fields))

    # Untyped conversion

    @classmethod
    def from_python(cls, raw: Any) -> SurrealValue:
        """
        Classify a decoded wire payload.

        Attempts run most specific first: null, bool, int, double, string,
        array, object. The first attempt that accepts the value wins, which
        means an integral float such as ``1.0`` becomes an ``int`` and an
        integer outside the signed 64-bit range becomes a (lossy) ``double``.

        Raises:
            DeserializationError: If no variant accepts the value.
        """
        if isinstance(raw, SurrealValue):
            return raw

        raw = _wire_scalar(raw)
        for attempt in _CLASSIFIERS:
            result = attempt(raw)
            if result is not None:
                return result

        raise DeserializationError(
            f"Unable to decode SurrealValue from {type(raw).__name__}",
            expected="SurrealValue",
            actual=type(raw).__name__,
        )

    def to_python(self) -> Any:
        """Convert back to plain Python values (dict, list, str, ...)."""
        if self.kind is ValueKind.ARRAY:
            return [item.to_python() for item in self.value]
        if self.kind is ValueKind.OBJECT:
            return {key: item.to_python() for key, item in self.value.items()}
        return self.value

    # Typed conversion

    @classmethod
    def from_typed(cls, value: Any, type_: Any = None) -> SurrealValue:
        """
        Convert a typed value through pydantic's JSON-mode serialization.

        Args:
            value: The value to convert (model, dataclass, plain value, ...)
            type_: Declared type of ``value``; defaults to ``type(value)``

        Raises:
            SerializationError: If the value has no wire representation.
        """
        if isinstance(value, SurrealValue):
            return value

        target = type_ if type_ is not None else type(value)
        try:
            adapter: TypeAdapter[Any] = TypeAdapter(target)
            raw = adapter.dump_python(value, mode="json", fallback=_json_fallback)
        except (PydanticSerializationError, PydanticUserError, TypeError, ValueError) as e:
            raise SerializationError(f"Cannot serialize {_type_name(target)}: {e}") from e

        try:
            return cls.from_python(raw)
        except DeserializationError as e:
            raise SerializationError(f"Cannot represent {_type_name(target)} as a SurrealValue: {e}") from e

    def to_typed(self, type_: type[T] | Any) -> T:
        """
        Decode this value into ``type_`` with pydantic validation.

        Raises:
            DeserializationError: If the shape does not match ``type_``.
        """
        if type_ is SurrealValue:
            return self  # type: ignore[return-value]

        name = _type_name(type_)
        try:
            adapter: TypeAdapter[T] = TypeAdapter(type_)
            return adapter.validate_python(self.to_python())
        except ValidationError as e:
            raise DeserializationError(
                f"Expected {name}, got {self.kind.value}: {e.errors()[0]['msg'] if e.errors() else e}",
                expected=name,
                actual=self.kind.value,
            ) from e
        except PydanticUserError as e:
            raise DeserializationError(f"Cannot decode into {name}: {e}", expected=name, actual=self.kind.value) from e

    # Navigation

    def at(self, key: int | str) -> SurrealValue | None:
        """
        Look up an array element or object field.

        Returns None for out-of-range indexes, missing keys and lookups on the
        wrong variant.
        """
        if isinstance(key, bool):
            return None
        if isinstance(key, int):
            if self.kind is ValueKind.ARRAY and 0 <= key < len(self.value):
                item: SurrealValue = self.value[key]
                return item
            return None
        if self.kind is ValueKind.OBJECT:
            field: SurrealValue | None = self.value.get(key)
            return field
        return None

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    def __str__(self) -> str:
        if self.kind is ValueKind.NULL:
            return "null"
        if self.kind is ValueKind.BOOL:
            return "true" if self.value else "false"
        if self.kind is ValueKind.STRING:
            return json.dumps(self.value, ensure_ascii=False)
        if self.kind is ValueKind.ARRAY:
            return "[" + ", ".join(str(item) for item in self.value) + "]"
        if self.kind is ValueKind.OBJECT:
            pairs = (f"{json.dumps(key, ensure_ascii=False)}: {item}" for key, item in self.value.items())
            return "{" + ", ".join(pairs) + "}"
        return str(self.value)


def _type_name(type_: Any) -> str:
    return getattr(type_, "__name__", None) or repr(type_)


def _json_fallback(value: Any) -> Any:
    """Serialize values pydantic cannot infer (used inside untyped containers)."""
    if isinstance(value, RecordID):
        return str(value)
    if isinstance(value, SurrealValue):
        return value.to_python()
    raise TypeError(f"Cannot represent {type(value).__name__} as a SurrealValue")


def _wire_scalar(raw: Any) -> Any:
    """Reduce extension scalars produced by the CBOR codec to their JSON form."""
    if isinstance(raw, RecordID | UUID):
        return str(raw)
    if isinstance(raw, datetime | date | time):
        return raw.isoformat()
    if isinstance(raw, Decimal):
        return float(raw)
    return raw


# Classification attempts, in precedence order


def _as_null(raw: Any) -> SurrealValue | None:
    return SurrealValue.null() if raw is None else None


def _as_bool(raw: Any) -> SurrealValue | None:
    return SurrealValue.boolean(raw) if isinstance(raw, bool) else None


def _as_int(raw: Any) -> SurrealValue | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int) and INT_MIN <= raw <= INT_MAX:
        return SurrealValue.integer(raw)
    if isinstance(raw, float) and math.isfinite(raw) and raw.is_integer() and INT_MIN <= raw <= INT_MAX:
        return SurrealValue.integer(int(raw))
    return None


def _as_double(raw: Any) -> SurrealValue | None:
    if isinstance(raw, bool) or not isinstance(raw, int | float):
        return None
    try:
        return SurrealValue.double(float(raw))
    except OverflowError:
        return None


def _as_string(raw: Any) -> SurrealValue | None:
    return SurrealValue.string(raw) if isinstance(raw, str) else None


def _as_array(raw: Any) -> SurrealValue | None:
    if not isinstance(raw, list | tuple):
        return None
    return SurrealValue.array(SurrealValue.from_python(item) for item in raw)


def _as_object(raw: Any) -> SurrealValue | None:
    if not isinstance(raw, Mapping) or not all(isinstance(key, str) for key in raw):
        return None
    return SurrealValue.object({key: SurrealValue.from_python(item) for key, item in raw.items()})


_CLASSIFIERS: tuple[Callable[[Any], SurrealValue | None], ...] = (
    _as_null,
    _as_bool,
    _as_int,
    _as_double,
    _as_string,
    _as_array,
    _as_object,
)


__all__ = ["SurrealValue", "ValueKind", "INT_MIN", "INT_MAX"]

"""
Record identifiers in the ``table:id`` format.

A ``RecordID`` is immutable once constructed. Its canonical text is the table
and the id joined by a single colon; parsing splits on the first colon only, so
the id may itself contain colons while the table may not.

Ids that SurrealDB escapes with angle brackets (``users:⟨8c5c...⟩``) get no
special treatment: the bracketed text is kept verbatim as the id.
"""

from __future__ import annotations

from typing import Any

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from .exceptions import InvalidRecordID

SEPARATOR = ":"


class RecordID:
    """
    A strongly-typed SurrealDB record identifier.

    Usage:
        rid = RecordID.parse("users:john")
        rid.table  # "users"
        rid.id     # "john"
        str(rid)   # "users:john"

    RecordID can be used as a field type on pydantic models and dataclasses;
    it serializes to its canonical string and validates from one.
    """

    __slots__ = ("table", "id")

    table: str
    id: str

    def __init__(self, table: str, id: str):
        text = f"{table}{SEPARATOR}{id}"
        if not table:
            raise InvalidRecordID("table name cannot be empty", text)
        if SEPARATOR in table:
            raise InvalidRecordID("table name cannot contain ':'", text)
        if not id:
            raise InvalidRecordID("id cannot be empty", text)
        object.__setattr__(self, "table", table)
        object.__setattr__(self, "id", id)

    @classmethod
    def parse(cls, value: str) -> RecordID:
        """
        Parse a ``table:id`` string.

        Raises:
            InvalidRecordID: If the separator is missing or either side is empty.
        """
        table, sep, id_part = value.partition(SEPARATOR)
        if not sep:
            raise InvalidRecordID("missing ':' separator", value)
        if not table:
            raise InvalidRecordID("table name cannot be empty", value)
        if not id_part:
            raise InvalidRecordID("id cannot be empty", value)
        return cls(table, id_part)

    def format(self) -> str:
        """Return the canonical ``table:id`` text."""
        return f"{self.table}{SEPARATOR}{self.id}"

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"RecordID(table={self.table!r}, id={self.id!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordID):
            return NotImplemented
        return self.table == other.table and self.id == other.id

    def __hash__(self) -> int:
        return hash((self.table, self.id))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("RecordID is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("RecordID is immutable")

    # Pydantic integration

    @classmethod
    def _validate(cls, value: Any) -> RecordID:
        if isinstance(value, RecordID):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        raise ValueError(f"Expected record ID string, got {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: GetCoreSchemaHandler) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.to_string_ser_schema(),
        )


__all__ = ["RecordID", "SEPARATOR"]

"""
Type definitions for SurrealDB query responses.

Provides typed wrappers around the result of the ``query`` RPC.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from .value import SurrealValue, ValueKind

T = TypeVar("T")


class ResponseStatus(str, Enum):
    """Status of a statement result."""

    OK = "OK"
    ERR = "ERR"


@dataclass
class QueryResult:
    """
    Result of a single query statement.

    Attributes:
        status: OK or ERR
        result: The statement result data (records, scalar, etc.)
        time: Execution time as reported by SurrealDB
    """

    status: ResponseStatus
    result: SurrealValue = field(default_factory=SurrealValue.null)
    time: str = ""

    @classmethod
    def from_value(cls, value: SurrealValue) -> "QueryResult":
        """Parse a statement result from its wire value."""
        status = value.at("status")
        if status is None:
            # Direct result without status wrapper
            return cls(status=ResponseStatus.OK, result=value)

        time = value.at("time")
        return cls(
            status=ResponseStatus.ERR if status.value == ResponseStatus.ERR.value else ResponseStatus.OK,
            result=value.at("result") or SurrealValue.null(),
            time=str(time.value) if time is not None and time.kind is ValueKind.STRING else "",
        )

    @property
    def is_ok(self) -> bool:
        """Check if the statement succeeded."""
        return self.status == ResponseStatus.OK

    @property
    def is_error(self) -> bool:
        """Check if the statement failed."""
        return self.status == ResponseStatus.ERR

    @property
    def records(self) -> list[SurrealValue]:
        """Get result as list of records. Returns empty list if not applicable."""
        if self.result.kind is ValueKind.ARRAY:
            return list(self.result.value)
        return []

    @property
    def first(self) -> SurrealValue | None:
        """Get first record or None."""
        return self.result.at(0)

    def decode(self, type_: type[T] | Any) -> T:
        """Decode the statement result into ``type_``."""
        return self.result.to_typed(type_)


@dataclass
class QueryResponse:
    """
    Response from a SurrealDB query operation.

    Contains one QueryResult per statement in the query.
    """

    results: list[QueryResult] = field(default_factory=list)
    raw: SurrealValue = field(default_factory=SurrealValue.null)

    @classmethod
    def from_rpc_result(cls, data: SurrealValue) -> "QueryResponse":
        """Parse query response from RPC result."""
        if data.kind is ValueKind.ARRAY:
            results = [QueryResult.from_value(item) for item in data.value]
        elif data.is_null:
            results = []
        else:
            results = [QueryResult.from_value(data)]
        return cls(results=results, raw=data)

    @property
    def is_ok(self) -> bool:
        """Check if all statements succeeded."""
        return all(r.is_ok for r in self.results)

    @property
    def first_result(self) -> QueryResult | None:
        """Get first statement result."""
        return self.results[0] if self.results else None

    @property
    def all_records(self) -> list[SurrealValue]:
        """Get all records from all statements."""
        records: list[SurrealValue] = []
        for result in self.results:
            records.extend(result.records)
        return records

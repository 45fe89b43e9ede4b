"""Unit tests for surreal_session.protocol: envelopes and CBOR."""

import json
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

import cbor2
import pytest

from surreal_session.exceptions import DeserializationError
from surreal_session.protocol.cbor import (
    DECODE_ERRORS,
    TAG_DATETIME,
    TAG_NONE,
    TAG_RECORDID,
    TAG_STRING_DECIMAL,
    TAG_STRING_DURATION,
    TAG_STRING_UUID,
    TAG_TABLE,
    decode,
    encode,
)
from surreal_session.protocol.rpc import (
    LiveAction,
    LiveQueryNotification,
    RPCErrorPayload,
    RPCMethod,
    RPCRequest,
    RPCResponse,
    parse_message,
)
from surreal_session.record_id import RecordID
from surreal_session.value import SurrealValue

# ── Requests ────────────────────────────────────────────────────────


class TestRPCRequest:
    def test_to_dict(self) -> None:
        request = RPCRequest(
            id="1",
            method=RPCMethod.SELECT,
            params=[SurrealValue.string("users:john")],
        )
        assert request.to_dict() == {"id": "1", "method": "select", "params": ["users:john"]}

    def test_to_json(self) -> None:
        request = RPCRequest(id="7", method="query", params=[SurrealValue.from_python({"a": [1, None]})])
        assert json.loads(request.to_json()) == {"id": "7", "method": "query", "params": [{"a": [1, None]}]}

    def test_default_params(self) -> None:
        assert RPCRequest(id="1", method="ping").to_dict()["params"] == []

    def test_to_cbor(self) -> None:
        request = RPCRequest(id="3", method="ping")
        assert decode(request.to_cbor()) == {"id": "3", "method": "ping", "params": []}


# ── Responses ───────────────────────────────────────────────────────


class TestRPCResponse:
    def test_success(self) -> None:
        response = RPCResponse.from_dict({"id": "1", "result": {"name": "John"}})
        assert response.id == "1"
        assert response.is_success
        assert response.result == SurrealValue.from_python({"name": "John"})

    def test_error(self) -> None:
        response = RPCResponse.from_dict(
            {"id": "2", "error": {"code": -32000, "message": "There was a problem", "data": "detail"}}
        )
        assert response.is_error
        assert response.error == RPCErrorPayload(-32000, "There was a problem", SurrealValue.string("detail"))

    def test_numeric_id_normalized(self) -> None:
        assert RPCResponse.from_dict({"id": 5, "result": None}).id == "5"

    def test_null_result_vs_missing_result(self) -> None:
        """Test that an explicit null result differs from an absent one."""
        assert RPCResponse.from_dict({"id": "1", "result": None}).result == SurrealValue.null()
        assert RPCResponse.from_dict({"id": "1"}).result is None

    def test_error_defaults(self) -> None:
        error = RPCErrorPayload.from_dict({})
        assert error.code == -1
        assert error.message == "Unknown error"
        assert error.data is None

    def test_from_json(self) -> None:
        response = RPCResponse.from_json('{"id": "9", "result": [1, 2]}')
        assert response.result == SurrealValue.from_python([1, 2])

    def test_to_dict(self) -> None:
        response = RPCResponse(id="1", error=RPCErrorPayload(code=-1, message="bad"))
        assert response.to_dict() == {"id": "1", "error": {"code": -1, "message": "bad"}}


# ── Live notifications ──────────────────────────────────────────────


class TestLiveQueryNotification:
    def test_from_dict(self) -> None:
        notification = LiveQueryNotification.from_dict(
            {"id": "q1", "action": "CREATE", "result": {"id": "users:1", "name": "Alice"}}
        )
        assert notification.query_id == "q1"
        assert notification.action is LiveAction.CREATE
        assert notification.result.at("name") == SurrealValue.string("Alice")

    def test_query_id_alias(self) -> None:
        notification = LiveQueryNotification.from_dict({"queryId": "q2", "action": "delete"})
        assert notification.query_id == "q2"
        assert notification.action is LiveAction.DELETE
        assert notification.result.is_null

    def test_close(self) -> None:
        assert LiveQueryNotification.from_dict({"id": "q1", "action": "CLOSE"}).is_close

    def test_unknown_action(self) -> None:
        with pytest.raises(DeserializationError, match="Unknown live query action"):
            LiveQueryNotification.from_dict({"id": "q1", "action": "EXPLODE"})

    def test_missing_id(self) -> None:
        with pytest.raises(DeserializationError):
            LiveQueryNotification.from_dict({"action": "CREATE"})


class TestParseMessage:
    def test_response(self) -> None:
        parsed = parse_message({"id": "1", "result": "ok"})
        assert isinstance(parsed, RPCResponse)
        assert parsed.result == SurrealValue.string("ok")

    def test_top_level_notification(self) -> None:
        parsed = parse_message({"id": "q1", "action": "UPDATE", "result": {}})
        assert isinstance(parsed, LiveQueryNotification)
        assert parsed.action is LiveAction.UPDATE

    def test_wrapped_notification(self) -> None:
        parsed = parse_message({"result": {"id": "q1", "action": "CREATE", "result": {"n": 1}}})
        assert isinstance(parsed, LiveQueryNotification)
        assert parsed.query_id == "q1"

    def test_response_whose_result_has_action_field(self) -> None:
        """Test that an id-tagged reply is never mistaken for a notification."""
        parsed = parse_message({"id": "4", "result": {"id": "x", "action": "CREATE"}})
        assert isinstance(parsed, RPCResponse)

    def test_unrecognised(self) -> None:
        assert parse_message({"result": "orphan"}) is None
        assert parse_message(["not", "a", "dict"]) is None


# ── CBOR codec ──────────────────────────────────────────────────────


def tagged(tag: int, value: object) -> bytes:
    return cbor2.dumps(cbor2.CBORTag(tag, value))


class TestCBOR:
    def test_request_encodes_plain_values(self) -> None:
        request = RPCRequest(id="1", method="select", params=[SurrealValue.string("users:john")])
        raw = cbor2.loads(request.to_cbor())
        assert raw == {"id": "1", "method": "select", "params": ["users:john"]}

    def test_record_id_list_form(self) -> None:
        assert decode(tagged(TAG_RECORDID, ["users", "john"])) == RecordID("users", "john")

    def test_record_id_string_form(self) -> None:
        assert decode(tagged(TAG_RECORDID, "users:john")) == RecordID("users", "john")

    def test_record_id_malformed(self) -> None:
        with pytest.raises(DECODE_ERRORS):
            decode(tagged(TAG_RECORDID, 42))
        with pytest.raises(DECODE_ERRORS):
            decode(tagged(TAG_RECORDID, "no-colon"))

    def test_none_tag(self) -> None:
        assert decode(tagged(TAG_NONE, None)) is None

    def test_table_and_duration_tags(self) -> None:
        assert decode(tagged(TAG_TABLE, "users")) == "users"
        assert decode(tagged(TAG_STRING_DURATION, "1h30m")) == "1h30m"

    def test_datetime_text(self) -> None:
        assert decode(tagged(TAG_DATETIME, "2024-05-17T12:30:00Z")) == datetime(2024, 5, 17, 12, 30, tzinfo=UTC)

    def test_datetime_compact(self) -> None:
        """Test the ``[seconds, nanoseconds]`` datetime form."""
        moment = datetime(2024, 5, 17, 12, 30, tzinfo=UTC)
        decoded = decode(tagged(TAG_DATETIME, [int(moment.timestamp()), 500_000_000]))
        assert decoded == datetime(2024, 5, 17, 12, 30, 0, 500_000, tzinfo=UTC)

    def test_decimal_and_uuid(self) -> None:
        uid = UUID("12345678-1234-5678-1234-567812345678")
        payload = cbor2.dumps(
            {"d": cbor2.CBORTag(TAG_STRING_DECIMAL, "10.25"), "u": cbor2.CBORTag(TAG_STRING_UUID, str(uid))}
        )
        assert decode(payload) == {"d": Decimal("10.25"), "u": uid}

    def test_malformed_decimal(self) -> None:
        with pytest.raises(DECODE_ERRORS):
            decode(tagged(TAG_STRING_DECIMAL, "not-a-decimal"))

    def test_unknown_tag_yields_content(self) -> None:
        assert decode(tagged(99, {"a": 1})) == {"a": 1}

    def test_truncated_payload(self) -> None:
        payload = cbor2.dumps({"id": "1", "result": "ok"})
        with pytest.raises(DECODE_ERRORS):
            decode(payload[:-3])

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises((cbor2.CBORError, TypeError)):
            encode(object())

    def test_response_decoding(self) -> None:
        payload = cbor2.dumps({"id": "1", "result": {"author": cbor2.CBORTag(TAG_RECORDID, ["users", "john"])}})
        response = RPCResponse.from_cbor(payload)
        assert response.result == SurrealValue.from_python({"author": "users:john"})

    def test_response_with_bytes_result(self) -> None:
        """Test that a result with no SurrealValue form is rejected."""
        with pytest.raises(DeserializationError):
            RPCResponse.from_cbor(cbor2.dumps({"id": "1", "result": {"blob": b"\x00\x01"}}))


"""Tests for aiowsrpc.ws.protocol — envelope builders, classifier, codec."""

from __future__ import annotations

import json

import pytest

from aiowsrpc.exceptions import WsRpcProtocolError
from aiowsrpc.models import BuildMode, MessageKind
from aiowsrpc.ws.protocol import (
    BARE_BUILDER,
    RPC_VERSION,
    STRICT_BUILDER,
    EnvelopeBuilder,
    classify_message,
    decode_message,
    encode_message,
    make_error_object,
)


class TestStrictBuilder:
    def test_notification(self) -> None:
        env = STRICT_BUILDER.build_notification("ping", [1, 2])
        assert env == {"jsonrpc": "2.0", "method": "ping", "params": [1, 2]}

    def test_notification_without_params_omits_field(self) -> None:
        env = STRICT_BUILDER.build_notification("ping")
        assert env == {"jsonrpc": "2.0", "method": "ping"}
        assert "params" not in env

    def test_request(self) -> None:
        env = STRICT_BUILDER.build_request("abc", "sum", {"a": 1})
        assert env == {
            "jsonrpc": "2.0",
            "id": "abc",
            "method": "sum",
            "params": {"a": 1},
        }

    def test_request_keeps_empty_params(self) -> None:
        env = STRICT_BUILDER.build_request(1, "list", [])
        assert env["params"] == []

    def test_success_response_keeps_null_result(self) -> None:
        env = STRICT_BUILDER.build_success_response(7, None)
        assert env == {"jsonrpc": "2.0", "id": 7, "result": None}

    def test_error_response(self) -> None:
        env = STRICT_BUILDER.build_error_response(
            7, make_error_object(-32601, "Method not found")
        )
        assert env == {
            "jsonrpc": "2.0",
            "id": 7,
            "error": {"code": -32601, "message": "Method not found"},
        }

    def test_default_mode_is_strict(self) -> None:
        assert EnvelopeBuilder().mode is BuildMode.STRICT
        assert RPC_VERSION == "2.0"


class TestBareBuilder:
    @pytest.mark.parametrize(
        "env",
        [
            BARE_BUILDER.build_notification("ping", [1]),
            BARE_BUILDER.build_request(1, "ping", [1]),
            BARE_BUILDER.build_success_response(1, "ok"),
            BARE_BUILDER.build_error_response(1, make_error_object(1, "bad")),
        ],
    )
    def test_never_contains_jsonrpc(self, env: dict) -> None:
        assert "jsonrpc" not in env

    def test_request_shape(self) -> None:
        env = BARE_BUILDER.build_request("x", "m")
        assert env == {"id": "x", "method": "m"}


class TestMakeErrorObject:
    def test_omits_data_when_absent(self) -> None:
        assert make_error_object(-1, "oops") == {"code": -1, "message": "oops"}

    def test_includes_data(self) -> None:
        err = make_error_object(-1, "oops", {"field": "x"})
        assert err["data"] == {"field": "x"}


class TestClassifyMessage:
    def test_notification_without_id(self) -> None:
        assert classify_message({"method": "tick"}) is MessageKind.NOTIFICATION

    def test_notification_with_falsy_id(self) -> None:
        assert classify_message({"id": 0, "method": "tick"}) is MessageKind.NOTIFICATION
        assert classify_message({"id": "", "method": "tick"}) is MessageKind.NOTIFICATION
        assert classify_message({"id": None, "result": 1}) is MessageKind.NOTIFICATION

    def test_method_and_id_is_request(self) -> None:
        assert classify_message({"id": 1, "method": "m"}) is MessageKind.REQUEST

    def test_result_is_success_response(self) -> None:
        assert classify_message({"id": 1, "result": 5}) is MessageKind.SUCCESS_RESPONSE

    def test_null_result_still_success_response(self) -> None:
        assert classify_message({"id": 1, "result": None}) is MessageKind.SUCCESS_RESPONSE

    def test_falsy_result_still_success_response(self) -> None:
        assert classify_message({"id": 1, "result": 0}) is MessageKind.SUCCESS_RESPONSE

    def test_error_is_error_response(self) -> None:
        msg = {"id": 1, "error": {"code": -1, "message": "x"}}
        assert classify_message(msg) is MessageKind.ERROR_RESPONSE

    def test_result_wins_over_error(self) -> None:
        msg = {"id": 1, "result": 1, "error": {"code": -1, "message": "x"}}
        assert classify_message(msg) is MessageKind.SUCCESS_RESPONSE

    def test_unrecognised_object_returns_none(self) -> None:
        assert classify_message({"id": 1}) is None

    def test_non_object_returns_none(self) -> None:
        assert classify_message([{"id": 1, "result": 1}]) is None
        assert classify_message("hello") is None

    def test_built_request_classifies_as_request(self) -> None:
        env = STRICT_BUILDER.build_request("id-1", "test", ["test"])
        decoded = decode_message(encode_message(env))
        assert classify_message(decoded) is MessageKind.REQUEST
        assert decoded["id"] == "id-1"


class TestCodec:
    def test_encode_produces_json_text(self) -> None:
        text = encode_message({"method": "m"})
        assert isinstance(text, str)
        assert json.loads(text) == {"method": "m"}

    def test_decode_accepts_bytes(self) -> None:
        assert decode_message(b'{"id": 1, "result": 2}') == {"id": 1, "result": 2}

    def test_garbage_raises_protocol_error(self) -> None:
        with pytest.raises(WsRpcProtocolError):
            decode_message("{not json")

"""JSON-RPC envelope helpers: build, classify, encode and decode."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from aiowsrpc.exceptions import WsRpcProtocolError
from aiowsrpc.models import BuildMode, Envelope, MessageKind, RpcId

RPC_VERSION = "2.0"


def encode_message(envelope: Envelope) -> str:
    """Serialize an envelope to JSON text."""
    return json.dumps(envelope)


def decode_message(data: str | bytes) -> Any:
    """Deserialize a JSON text (or UTF-8 bytes) frame.

    Raises WsRpcProtocolError on decode failure.
    """
    try:
        return json.loads(data)
    except (ValueError, TypeError) as err:
        raise WsRpcProtocolError(f"Failed to decode message: {err}") from err


def make_error_object(
    code: int, message: str, data: Any = None
) -> dict[str, Any]:
    """Build a JSON-RPC error object; ``data`` is left out when None."""
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return error


@dataclass(frozen=True)
class EnvelopeBuilder:
    """Shapes outgoing envelopes in strict (``jsonrpc`` tagged) or bare mode.

    The mode is fixed per instance; the client swaps the whole builder to
    change it.
    """

    mode: BuildMode = BuildMode.STRICT

    def build_notification(self, method: str, params: Any = None) -> Envelope:
        data: Envelope = {"method": method}
        if params is not None:
            data["params"] = params
        return self._finish(data)

    def build_request(
        self, request_id: RpcId, method: str, params: Any = None
    ) -> Envelope:
        data: Envelope = {"id": request_id, "method": method}
        if params is not None:
            data["params"] = params
        return self._finish(data)

    def build_success_response(self, request_id: RpcId, result: Any) -> Envelope:
        return self._finish({"id": request_id, "result": result})

    def build_error_response(
        self, request_id: RpcId, error: Mapping[str, Any]
    ) -> Envelope:
        return self._finish({"id": request_id, "error": dict(error)})

    def _finish(self, data: Envelope) -> Envelope:
        if self.mode is BuildMode.STRICT:
            data["jsonrpc"] = RPC_VERSION
        return data


STRICT_BUILDER = EnvelopeBuilder(BuildMode.STRICT)
BARE_BUILDER = EnvelopeBuilder(BuildMode.BARE)


# ----------------------------------------------------------------------
# Classification
# ----------------------------------------------------------------------


def is_notification(data: Mapping[str, Any]) -> bool:
    return not data.get("id")


def is_request(data: Mapping[str, Any]) -> bool:
    return bool(data.get("method"))


def is_success_response(data: Mapping[str, Any]) -> bool:
    return "result" in data


def is_error_response(data: Mapping[str, Any]) -> bool:
    return "error" in data


# Evaluated in order, first match wins. A message with both "id" and
# "method" is a request because the id test runs first.
_CLASSIFIERS = (
    (is_notification, MessageKind.NOTIFICATION),
    (is_request, MessageKind.REQUEST),
    (is_success_response, MessageKind.SUCCESS_RESPONSE),
    (is_error_response, MessageKind.ERROR_RESPONSE),
)


def classify_message(data: Any) -> MessageKind | None:
    """Return the kind of a decoded inbound message, or None if unrecognised.

    Non-object payloads (arrays, scalars) are never classified.
    """
    if not isinstance(data, Mapping):
        return None
    for predicate, kind in _CLASSIFIERS:
        if predicate(data):
            return kind
    return None

"""Exceptions for the aiowsrpc library."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class WsRpcError(Exception):
    """Base exception for all aiowsrpc errors."""


class WsRpcConnectionError(WsRpcError):
    """Network-level connection failure (DNS, TCP, TLS, WebSocket handshake)."""


class WsRpcTransportError(WsRpcError):
    """WebSocket transport error (send on closed socket, connection lost)."""


class WsRpcRequestTimeout(WsRpcError):
    """A call did not receive a response within the configured timeout."""

    def __init__(
        self, method: str, request_id: str | int, timeout: float
    ) -> None:

        super().__init__(
            f"Call {method} (id={request_id}) timed out after {timeout}s"
        )
        self.method = method
        self.request_id = request_id
        self.timeout = timeout


class WsRpcProtocolError(WsRpcError):
    """Inbound frame could not be decoded as JSON."""


class WsRpcResponseError(WsRpcError):
    """The server answered a call with a JSON-RPC error object.

    The object is kept verbatim in ``error``; ``code``, ``message`` and
    ``data`` are shortcuts into it.
    """

    def __init__(self, error: Any) -> None:
        if isinstance(error, Mapping):
            code = error.get("code")
            message = error.get("message")
            data = error.get("data")
        else:
            code, message, data = None, None, None

        super().__init__(f"RPC error {code}: {message}")
        self.error = error
        self.code = code
        self.message = message
        self.data = data

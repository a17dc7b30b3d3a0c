"""WebSocket transport layer for aiowsrpc."""

from __future__ import annotations

from .ids import IdGenerator, uuid1_id
from .pending import PendingCalls
from .protocol import (
    BARE_BUILDER,
    RPC_VERSION,
    STRICT_BUILDER,
    EnvelopeBuilder,
    classify_message,
    decode_message,
    encode_message,
    make_error_object,
)
from .transport import WsTransport

__all__ = [
    "BARE_BUILDER",
    "RPC_VERSION",
    "STRICT_BUILDER",
    "EnvelopeBuilder",
    "IdGenerator",
    "PendingCalls",
    "WsTransport",
    "classify_message",
    "decode_message",
    "encode_message",
    "make_error_object",
    "uuid1_id",
]

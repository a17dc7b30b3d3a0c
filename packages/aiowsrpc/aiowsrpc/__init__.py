"""aiowsrpc — async JSON-RPC 2.0 client over WebSocket."""

from .client import RpcWebSocketClient
from .exceptions import (
    WsRpcConnectionError,
    WsRpcError,
    WsRpcProtocolError,
    WsRpcRequestTimeout,
    WsRpcResponseError,
    WsRpcTransportError,
)
from .models import (
    BuildMode,
    ClientConfig,
    ConnectionState,
    EventKind,
    MessageKind,
    RpcId,
)
from .ws.protocol import RPC_VERSION
from .ws.transport import WsTransport

__all__ = [
    # client
    "RpcWebSocketClient",
    "WsTransport",
    "RPC_VERSION",
    # models
    "BuildMode",
    "ClientConfig",
    "ConnectionState",
    "EventKind",
    "MessageKind",
    "RpcId",
    # exceptions
    "WsRpcConnectionError",
    "WsRpcError",
    "WsRpcProtocolError",
    "WsRpcRequestTimeout",
    "WsRpcResponseError",
    "WsRpcTransportError",
]

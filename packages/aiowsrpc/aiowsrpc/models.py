"""Data models for aiowsrpc — enums and frozen dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

RpcId = str | int
Envelope = dict[str, Any]


class MessageKind(Enum):
    NOTIFICATION = "notification"
    REQUEST = "request"
    SUCCESS_RESPONSE = "success_response"
    ERROR_RESPONSE = "error_response"


class BuildMode(Enum):
    STRICT = "strict"   # envelopes carry "jsonrpc": "2.0"
    BARE = "bare"


class EventKind(Enum):
    OPEN = "open"
    ANY_MESSAGE = "any_message"
    NOTIFICATION = "notification"
    REQUEST = "request"
    SUCCESS_RESPONSE = "success_response"
    ERROR_RESPONSE = "error_response"
    ERROR = "error"
    CLOSE = "close"


class ConnectionState(Enum):
    CONNECTED = "connected"
    CONNECTING = "connecting"
    DISCONNECTED = "disconnected"


# Category subscribers for each classified inbound message.
MESSAGE_EVENTS: dict[MessageKind, EventKind] = {
    MessageKind.NOTIFICATION: EventKind.NOTIFICATION,
    MessageKind.REQUEST: EventKind.REQUEST,
    MessageKind.SUCCESS_RESPONSE: EventKind.SUCCESS_RESPONSE,
    MessageKind.ERROR_RESPONSE: EventKind.ERROR_RESPONSE,
}


@dataclass(frozen=True)
class ClientConfig:
    """Per-client settings. Replaced as a whole by ``configure()``."""

    response_timeout: float | None = 10.0   # seconds; None or <= 0 disables
    fail_pending_on_close: bool = False

    @property
    def timeout_enabled(self) -> bool:
        return self.response_timeout is not None and self.response_timeout > 0

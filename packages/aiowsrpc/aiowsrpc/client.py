"""JSON-RPC 2.0 client over a single WebSocket connection."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Sequence
from typing import Any

import aiohttp

from .dispatch import EventDispatcher
from .exceptions import WsRpcResponseError, WsRpcTransportError
from .models import (
    MESSAGE_EVENTS,
    BuildMode,
    ClientConfig,
    ConnectionState,
    EventKind,
    MessageKind,
    RpcId,
)
from .ws.ids import IdGenerator, uuid1_id
from .ws.pending import PendingCalls
from .ws.protocol import (
    BARE_BUILDER,
    STRICT_BUILDER,
    EnvelopeBuilder,
    classify_message,
    decode_message,
    encode_message,
    make_error_object,
)
from .ws.transport import WsTransport

_LOGGER = logging.getLogger(__name__)


class RpcWebSocketClient:
    """Sends JSON-RPC calls and notifications, correlates responses.

    Does not open a connection on construction: call ``async_connect`` or
    hand over an existing transport with ``change_socket`` followed by
    ``listen_messages``.

    The caller owns the aiohttp.ClientSession and must close it
    independently.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        config: ClientConfig | None = None,
        id_generator: IdGenerator | None = None,
    ) -> None:
        self._session: aiohttp.ClientSession = session
        self._config: ClientConfig = config or ClientConfig()
        self._id_generator: IdGenerator = id_generator or uuid1_id
        self._builder: EnvelopeBuilder = STRICT_BUILDER
        self._pending: PendingCalls = PendingCalls()
        self._events: EventDispatcher = EventDispatcher()
        self._transport: WsTransport | None = None
        self._message_hook: Callable[[str | bytes], None] | None = None
        self._wrapped_handler: Callable[[str | bytes], None] | None = None
        self._owns_transport: bool = False
        self._state: ConnectionState = ConnectionState.DISCONNECTED

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def build_mode(self) -> BuildMode:
        """STRICT when envelopes carry the ``jsonrpc`` tag, else BARE."""
        return self._builder.mode

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        """True when the WebSocket transport is connected."""
        return self._transport is not None and self._transport.connected

    @property
    def transport(self) -> WsTransport | None:
        return self._transport

    @property
    def pending_count(self) -> int:
        """Number of calls awaiting a response."""
        return self._pending.pending_count

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_connect(
        self,
        url: str,
        protocols: str | Sequence[str] | None = None,
    ) -> None:
        """Open the WebSocket connection; returns once it is open.

        Never hangs on failure: a failed handshake raises instead of
        leaving the call pending. A transport previously opened by this
        client is closed first.

        Raises:
            WsRpcConnectionError: If the handshake fails. Error and close
                subscribers have already been notified.
        """
        previous = self._transport
        close_previous = previous is not None and self._owns_transport

        transport = WsTransport(self._session)
        self.change_socket(transport)
        self._owns_transport = True
        if close_previous:
            assert previous is not None
            await previous.async_close()

        transport.on_open = self._handle_open
        self.listen_messages()
        transport.on_error = self._handle_error
        transport.on_close = self._handle_close

        self._state = ConnectionState.CONNECTING
        await transport.async_open(url, protocols)

    def change_socket(self, transport: WsTransport) -> None:
        """Replace the transport used for sending and receiving.

        For a transport already connected by other code, follow with
        ``listen_messages``. Open/error/close hooks of the new transport
        are left untouched. The previous transport is unhooked from this
        client (its own message handler is restored) but not closed.
        """
        previous = self._transport
        if previous is not None and previous is not transport:
            self._detach(previous)
        self._transport = transport
        self._owns_transport = False
        self._state = (
            ConnectionState.CONNECTED
            if transport.connected
            else ConnectionState.DISCONNECTED
        )

    def listen_messages(self) -> None:
        """Route the transport's inbound frames through this client.

        A message handler already set on the transport keeps working and
        runs first; its failures go to error subscribers. Starts the
        receive loop if the socket is already open.
        """
        transport = self._require_transport()
        previous = transport.on_message
        if previous is None or previous is not self._message_hook:

            def _hook(data: str | bytes) -> None:
                if previous is not None:
                    try:
                        previous(data)
                    except Exception as err:  # noqa: BLE001
                        _LOGGER.exception("Error in previous message handler")
                        self._handle_error(err)
                self._on_ws_message(data)

            self._message_hook = _hook
            self._wrapped_handler = previous
            transport.on_message = _hook

        if transport.connected:
            transport.start_reading()

    async def async_close(self) -> None:
        """Close the transport. Close subscribers are notified."""
        if self._transport is not None:
            await self._transport.async_close()

    # ------------------------------------------------------------------
    # Communication
    # ------------------------------------------------------------------

    async def async_call(self, method: str, params: Any = None) -> Any:
        """Send a request and await its correlated response.

        Returns the ``result`` of the success response.

        Raises:
            WsRpcResponseError: The server answered with an error object.
            WsRpcRequestTimeout: No response within ``response_timeout``.
            WsRpcTransportError: Not connected, or the send failed.
        """
        transport = self._require_transport()
        request_id = self._id_generator()
        data = encode_message(
            self._builder.build_request(request_id, method, params)
        )

        config = self._config
        future = self._pending.track(
            request_id,
            method,
            config.response_timeout if config.timeout_enabled else None,
        )
        try:
            await transport.async_send(data)
        except BaseException:
            # Send failed or the caller was cancelled mid-send.
            self._pending.discard(request_id)
            raise

        return await future

    async def async_notify(self, method: str, params: Any = None) -> None:
        """Send a notification. No response is expected."""
        transport = self._require_transport()
        await transport.async_send(
            encode_message(self._builder.build_notification(method, params))
        )

    async def async_respond(self, request_id: RpcId, result: Any) -> None:
        """Answer a server-initiated request with a success response."""
        transport = self._require_transport()
        await transport.async_send(
            encode_message(
                self._builder.build_success_response(request_id, result)
            )
        )

    async def async_respond_error(
        self,
        request_id: RpcId,
        code: int,
        message: str,
        data: Any = None,
    ) -> None:
        """Answer a server-initiated request with an error response."""
        transport = self._require_transport()
        error = make_error_object(code, message, data)
        await transport.async_send(
            encode_message(self._builder.build_error_response(request_id, error))
        )

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def custom_id(self, id_generator: IdGenerator) -> None:
        """Replace the default UUID1 id generator.

        Ids must stay unique among in-flight calls; that is now up to
        *id_generator*.
        """
        self._id_generator = id_generator

    def no_rpc(self) -> None:
        """Stop adding ``"jsonrpc": "2.0"`` to outgoing envelopes."""
        self._builder = BARE_BUILDER

    def use_rpc(self) -> None:
        """Restore strict JSON-RPC 2.0 envelopes."""
        self._builder = STRICT_BUILDER

    def configure(self, **changes: Any) -> None:
        """Update configuration, e.g. ``configure(response_timeout=5)``.

        Applies to calls made afterwards. Unknown keys raise TypeError.
        """
        self._config = dataclasses.replace(self._config, **changes)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def on_open(self, fn: Callable[[WsTransport], None]) -> None:
        self._events.subscribe(EventKind.OPEN, fn)

    def on_any_message(self, fn: Callable[[str | bytes], None]) -> None:
        """Raw inbound frames, before decoding. Mostly for debugging."""
        self._events.subscribe(EventKind.ANY_MESSAGE, fn)

    def on_notification(self, fn: Callable[[dict[str, Any]], None]) -> None:
        self._events.subscribe(EventKind.NOTIFICATION, fn)

    def on_request(self, fn: Callable[[dict[str, Any]], None]) -> None:
        self._events.subscribe(EventKind.REQUEST, fn)

    def on_success_response(self, fn: Callable[[dict[str, Any]], None]) -> None:
        self._events.subscribe(EventKind.SUCCESS_RESPONSE, fn)

    def on_error_response(self, fn: Callable[[dict[str, Any]], None]) -> None:
        self._events.subscribe(EventKind.ERROR_RESPONSE, fn)

    def on_error(self, fn: Callable[[BaseException], None]) -> None:
        self._events.subscribe(EventKind.ERROR, fn)

    def on_close(self, fn: Callable[[int | None], None]) -> None:
        self._events.subscribe(EventKind.CLOSE, fn)

    # ------------------------------------------------------------------
    # Internal — transport events
    # ------------------------------------------------------------------

    def _handle_open(self, transport: WsTransport) -> None:
        self._state = ConnectionState.CONNECTED
        self._events.dispatch(EventKind.OPEN, transport)

    def _handle_error(self, err: BaseException) -> None:
        self._events.dispatch(EventKind.ERROR, err)

    def _handle_close(self, close_code: int | None) -> None:
        self._state = ConnectionState.DISCONNECTED
        if self._config.fail_pending_on_close and self._pending.pending_count:
            _LOGGER.debug(
                "Failing %d pending call(s) on close", self._pending.pending_count
            )
            self._pending.cancel_all(WsRpcTransportError("Connection lost"))
        self._events.dispatch(EventKind.CLOSE, close_code)

    def _on_ws_message(self, data: str | bytes) -> None:
        """Handle an incoming WebSocket frame."""
        self._events.dispatch(EventKind.ANY_MESSAGE, data)

        message = decode_message(data)
        kind = classify_message(message)
        if kind is None:
            _LOGGER.debug("Ignoring unrecognised message: %r", message)
            return

        self._events.dispatch(MESSAGE_EVENTS[kind], message)

        if kind is MessageKind.SUCCESS_RESPONSE:
            self._settle(message["id"], result=message["result"])
        elif kind is MessageKind.ERROR_RESPONSE:
            self._settle(
                message["id"], error=WsRpcResponseError(message["error"])
            )

    def _settle(
        self,
        request_id: Any,
        *,
        result: Any = None,
        error: WsRpcResponseError | None = None,
    ) -> None:
        if not isinstance(request_id, (str, int)):
            _LOGGER.debug("Response carries unusable id %r", request_id)
            return
        if error is not None:
            settled = self._pending.reject(request_id, error)
        else:
            settled = self._pending.resolve(request_id, result)
        if not settled:
            _LOGGER.debug(
                "Received response for unknown request %s", request_id
            )

    def _detach(self, transport: WsTransport) -> None:
        """Remove this client's hooks from *transport*."""
        if self._message_hook is not None and transport.on_message is self._message_hook:
            transport.on_message = self._wrapped_handler
        self._message_hook = None
        self._wrapped_handler = None
        if transport.on_open == self._handle_open:
            transport.on_open = None
        if transport.on_error == self._handle_error:
            transport.on_error = None
        if transport.on_close == self._handle_close:
            transport.on_close = None

    def _require_transport(self) -> WsTransport:
        if self._transport is None:
            raise WsRpcTransportError("Not connected")
        return self._transport

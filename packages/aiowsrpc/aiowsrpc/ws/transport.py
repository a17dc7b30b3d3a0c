"""WebSocket transport for the JSON-RPC client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any

import aiohttp

from aiowsrpc.exceptions import (
    WsRpcConnectionError,
    WsRpcProtocolError,
    WsRpcTransportError,
)

_LOGGER = logging.getLogger(__name__)

_HEARTBEAT_INTERVAL: float = 30.0  # aiohttp TCP-level ping/pong
_HANDSHAKE_TIMEOUT: float = 15.0  # ws_connect deadline


class WsTransport:
    """A single WebSocket connection exposing open/message/error/close hooks.

    Handles:
    - Connection to a URL with optional subprotocols
    - Attaching to an already-open aiohttp WebSocket owned by other code
    - Text/binary receive loop dispatching to ``on_message``
    - Graceful close with task cancellation

    There is no reconnect: once closed, a transport stays closed until
    ``async_open`` is called again.
    """

    def __init__(self, session: aiohttp.ClientSession) -> None:
        self._session = session

        self.on_open: Callable[[WsTransport], None] | None = None
        self.on_message: Callable[[str | bytes], None] | None = None
        self.on_error: Callable[[BaseException], None] | None = None
        self.on_close: Callable[[int | None], None] | None = None

        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._recv_task: asyncio.Task[None] | None = None
        self._url: str | None = None
        self._close_notified: bool = False
        self._connect_lock: asyncio.Lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        """True when the WebSocket is open."""
        return self._ws is not None and not self._ws.closed

    @property
    def reading(self) -> bool:
        """True while the receive loop is running."""
        return self._recv_task is not None and not self._recv_task.done()

    @property
    def url(self) -> str | None:
        return self._url

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def async_open(
        self,
        url: str,
        protocols: str | Sequence[str] | None = None,
    ) -> None:
        """Open the WebSocket and start reading.

        Fires ``on_open`` once the handshake completes. On failure fires
        ``on_error`` then ``on_close`` and raises WsRpcConnectionError.
        """
        if isinstance(protocols, str):
            protocols = (protocols,)

        async with self._connect_lock:
            await self._async_close_ws()
            self._url = url
            self._close_notified = False

            try:
                self._ws = await asyncio.wait_for(
                    self._session.ws_connect(
                        url,
                        protocols=tuple(protocols or ()),
                        heartbeat=_HEARTBEAT_INTERVAL,
                    ),
                    _HANDSHAKE_TIMEOUT,
                )
            except Exception as err:
                _LOGGER.debug("WebSocket connect to %s failed: %s", url, err)
                self._fire(self.on_error, err)
                self._notify_close(None)
                raise WsRpcConnectionError(str(err)) from err

            _LOGGER.info("WebSocket connected to %s", url)
            self._fire(self.on_open, self)
            self.start_reading()

    def attach(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        """Adopt an already-open WebSocket. Does not fire ``on_open``.

        Call ``start_reading`` (or the client's ``listen_messages``) to begin
        dispatching its frames.
        """
        if self.reading:
            raise WsRpcTransportError("Transport is already reading a socket")
        self._ws = ws
        self._close_notified = False

    def start_reading(self) -> None:
        """Start the receive loop if a socket is attached. Idempotent."""
        if self._ws is None or self.reading:
            return
        self._recv_task = asyncio.get_running_loop().create_task(
            self._recv_loop()
        )

    async def async_send(self, data: str) -> None:
        """Send a text frame over the WebSocket.

        Raises WsRpcTransportError if not connected or on send failure.
        """
        if not self.connected:
            raise WsRpcTransportError("Not connected")
        assert self._ws is not None  # for type-checker; guarded above
        try:
            await self._ws.send_str(data)
        except Exception as err:
            raise WsRpcTransportError(f"Send failed: {err}") from err

    async def async_close(self) -> None:
        """Close connection and cancel the receive loop. Idempotent."""
        had_socket = self._ws is not None
        close_code = await self._async_close_ws()
        if had_socket:
            self._notify_close(close_code)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _async_close_ws(self) -> int | None:
        """Close WebSocket and cancel the receive task."""
        task = self._recv_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._recv_task = None

        close_code = None
        if self._ws is not None:
            if not self._ws.closed:
                await self._ws.close()
            close_code = self._ws.close_code
        self._ws = None
        return close_code

    async def _recv_loop(self) -> None:
        """Read frames from the WebSocket and dispatch them."""
        ws = self._ws
        assert ws is not None
        try:
            async for msg in ws:
                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    self._deliver(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    _LOGGER.error("WebSocket error: %s", ws.exception())
                    self._fire(self.on_error, ws.exception())
                    break
                elif msg.type in (
                    aiohttp.WSMsgType.CLOSE,
                    aiohttp.WSMsgType.CLOSING,
                    aiohttp.WSMsgType.CLOSED,
                ):
                    _LOGGER.debug("WebSocket closed by server")
                    break
        except asyncio.CancelledError:
            return
        except Exception as err:  # noqa: BLE001
            _LOGGER.error("Recv loop error: %s", err)
            self._fire(self.on_error, err)

        self._notify_close(ws.close_code)

    def _deliver(self, data: str | bytes) -> None:
        if self.on_message is None:
            return
        try:
            self.on_message(data)
        except WsRpcProtocolError as err:
            _LOGGER.warning("Dropping undecodable frame: %s", err)
            self._fire(self.on_error, err)
        except Exception as err:  # noqa: BLE001
            _LOGGER.exception("Error in message handler")
            self._fire(self.on_error, err)

    def _notify_close(self, close_code: int | None) -> None:
        if self._close_notified:
            return
        self._close_notified = True
        _LOGGER.info("WebSocket closed (code=%s)", close_code)
        self._fire(self.on_close, close_code)

    @staticmethod
    def _fire(callback: Callable[[Any], None] | None, arg: Any) -> None:
        if callback is not None:
            callback(arg)

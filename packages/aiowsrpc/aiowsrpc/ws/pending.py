"""Request/response correlation for outgoing JSON-RPC calls."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from aiowsrpc.exceptions import WsRpcRequestTimeout
from aiowsrpc.models import RpcId


@dataclass
class _PendingCall:
    method: str
    future: asyncio.Future[Any]
    timer: asyncio.TimerHandle | None = None


class PendingCalls:
    """Tracks outgoing calls and correlates them with responses.

    Each call gets an asyncio.Future keyed by its request id and, when a
    timeout is given, a one-shot timer. Popping the entry from the table is
    the only state transition: whichever of response or timer comes second
    finds nothing and does nothing.
    """

    def __init__(self) -> None:
        self._pending: dict[RpcId, _PendingCall] = {}

    def track(
        self,
        request_id: RpcId,
        method: str,
        timeout: float | None = None,
    ) -> asyncio.Future[Any]:
        """Register a pending call. Returns a Future to await.

        Raises ValueError if request_id is already tracked.
        """
        if request_id in self._pending:
            raise ValueError(f"Request {request_id} is already tracked")
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        entry = _PendingCall(method, future)
        if timeout is not None and timeout > 0:
            entry.timer = loop.call_later(
                timeout, self._expire, request_id, future, timeout
            )
        self._pending[request_id] = entry
        future.add_done_callback(
            lambda fut: self._forget(request_id, fut)
        )
        return future

    def resolve(self, request_id: RpcId, result: Any) -> bool:
        """Settle a pending call with a success result.

        Returns True if a matching call was found, False otherwise.
        """
        entry = self._take(request_id)
        if entry is None:
            return False
        entry.future.set_result(result)
        return True

    def reject(self, request_id: RpcId, error: BaseException) -> bool:
        """Fail a pending call with *error*.

        Returns True if a matching call was found, False otherwise.
        """
        entry = self._take(request_id)
        if entry is None:
            return False
        entry.future.set_exception(error)
        return True

    def discard(self, request_id: RpcId) -> bool:
        """Stop tracking a call without settling its future."""
        entry = self._pending.pop(request_id, None)
        if entry is None:
            return False
        if entry.timer is not None:
            entry.timer.cancel()
        return True

    def cancel_all(self, error: Exception | None = None) -> None:
        """Cancel/fail all pending futures.

        If error is provided, futures are set_exception(error).
        Otherwise, futures are cancelled.
        Clears the pending map.
        """
        entries = list(self._pending.values())
        self._pending.clear()
        for entry in entries:
            if entry.timer is not None:
                entry.timer.cancel()
            if entry.future.done():
                continue
            if error is not None:
                entry.future.set_exception(error)
            else:
                entry.future.cancel()

    @property
    def pending_count(self) -> int:
        """Number of in-flight calls."""
        return len(self._pending)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._pending

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _take(self, request_id: RpcId) -> _PendingCall | None:
        entry = self._pending.pop(request_id, None)
        if entry is None:
            return None
        if entry.timer is not None:
            entry.timer.cancel()
        if entry.future.done():
            return None
        return entry

    def _expire(
        self, request_id: RpcId, future: asyncio.Future[Any], timeout: float
    ) -> None:
        entry = self._pending.get(request_id)
        if entry is None or entry.future is not future:
            return
        del self._pending[request_id]
        if not future.done():
            future.set_exception(
                WsRpcRequestTimeout(entry.method, request_id, timeout)
            )

    def _forget(self, request_id: RpcId, future: asyncio.Future[Any]) -> None:
        # Caller cancelled its await: drop the entry if it is still ours.
        entry = self._pending.get(request_id)
        if entry is not None and entry.future is future:
            del self._pending[request_id]
            if entry.timer is not None:
                entry.timer.cancel()

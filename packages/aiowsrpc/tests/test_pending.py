"""Tests for aiowsrpc.ws.pending — PendingCalls."""

from __future__ import annotations

import asyncio

import pytest

from aiowsrpc.exceptions import WsRpcRequestTimeout, WsRpcResponseError
from aiowsrpc.ws.pending import PendingCalls


class TestTrack:
    async def test_creates_future(self) -> None:
        p = PendingCalls()
        fut = p.track("a", "m")
        assert isinstance(fut, asyncio.Future)
        assert not fut.done()
        assert "a" in p

    async def test_increments_pending_count(self) -> None:
        p = PendingCalls()
        assert p.pending_count == 0
        p.track(1, "m")
        assert p.pending_count == 1
        p.track(2, "m")
        assert p.pending_count == 2

    async def test_duplicate_id_raises_value_error(self) -> None:
        p = PendingCalls()
        p.track(1, "m")
        with pytest.raises(ValueError, match="already tracked"):
            p.track(1, "m")


class TestResolve:
    async def test_resolves_matching_future(self) -> None:
        p = PendingCalls()
        fut = p.track(1, "m")
        assert p.resolve(1, {"ok": True}) is True
        assert fut.result() == {"ok": True}

    async def test_returns_false_for_unknown_id(self) -> None:
        p = PendingCalls()
        assert p.resolve(99, "x") is False

    async def test_removes_entry_from_pending(self) -> None:
        p = PendingCalls()
        p.track(1, "m")
        p.resolve(1, None)
        assert p.pending_count == 0

    async def test_second_settlement_is_noop(self) -> None:
        p = PendingCalls()
        fut = p.track(1, "m")
        assert p.resolve(1, "first") is True
        assert p.reject(1, WsRpcResponseError({"code": 1, "message": "x"})) is False
        assert fut.result() == "first"

    async def test_returns_false_for_already_done_future(self) -> None:
        p = PendingCalls()
        fut = p.track(1, "m")
        fut.cancel()
        # Entry is still mapped until the done-callback runs.
        assert p.resolve(1, "late") is False


class TestReject:
    async def test_sets_exception(self) -> None:
        p = PendingCalls()
        fut = p.track("r", "m")
        err = WsRpcResponseError({"code": -32000, "message": "boom"})
        assert p.reject("r", err) is True
        with pytest.raises(WsRpcResponseError, match="boom"):
            fut.result()
        assert p.pending_count == 0


class TestTimeout:
    async def test_expires_with_method_and_id(self) -> None:
        p = PendingCalls()
        fut = p.track("id-9", "never-answered", timeout=0.02)
        with pytest.raises(WsRpcRequestTimeout) as exc_info:
            await fut
        err = exc_info.value
        assert err.method == "never-answered"
        assert err.request_id == "id-9"
        assert "never-answered" in str(err)
        assert "id-9" in str(err)
        assert p.pending_count == 0

    async def test_late_response_after_timeout_is_noop(self) -> None:
        p = PendingCalls()
        fut = p.track(1, "m", timeout=0.01)
        with pytest.raises(WsRpcRequestTimeout):
            await fut
        assert p.resolve(1, "late") is False

    async def test_response_before_timeout_cancels_timer(self) -> None:
        p = PendingCalls()
        fut = p.track(1, "m", timeout=0.02)
        p.resolve(1, "fast")
        await asyncio.sleep(0.05)
        assert fut.result() == "fast"

    async def test_no_timer_when_disabled(self) -> None:
        p = PendingCalls()
        fut = p.track(1, "m", timeout=0)
        await asyncio.sleep(0.02)
        assert not fut.done()
        assert p.pending_count == 1
        p.cancel_all()

    async def test_new_call_with_reused_id_not_expired_by_old_timer(self) -> None:
        p = PendingCalls()
        first = p.track(1, "m", timeout=0.02)
        p.resolve(1, "done")
        second = p.track(1, "m")
        await asyncio.sleep(0.05)
        assert first.result() == "done"
        assert not second.done()
        p.cancel_all()


class TestDiscard:
    async def test_removes_without_settling(self) -> None:
        p = PendingCalls()
        fut = p.track(1, "m", timeout=0.01)
        assert p.discard(1) is True
        await asyncio.sleep(0.03)
        assert not fut.done()
        assert p.pending_count == 0

    async def test_unknown_id(self) -> None:
        assert PendingCalls().discard("x") is False


class TestCallerCancellation:
    async def test_cancelled_future_is_forgotten(self) -> None:
        p = PendingCalls()
        fut = p.track(1, "m")
        fut.cancel()
        await asyncio.sleep(0)
        assert p.pending_count == 0


class TestCancelAll:
    async def test_cancels_all_futures(self) -> None:
        p = PendingCalls()
        f1 = p.track(1, "m")
        f2 = p.track(2, "m")
        p.cancel_all()
        assert f1.cancelled()
        assert f2.cancelled()

    async def test_sets_exception_when_error_provided(self) -> None:
        p = PendingCalls()
        f1 = p.track(1, "m")
        f2 = p.track(2, "m")
        p.cancel_all(error=RuntimeError("disconnected"))
        with pytest.raises(RuntimeError, match="disconnected"):
            f1.result()
        with pytest.raises(RuntimeError, match="disconnected"):
            f2.result()

    async def test_clears_pending_map(self) -> None:
        p = PendingCalls()
        p.track(1, "m", timeout=5)
        p.track(2, "m")
        p.cancel_all()
        assert p.pending_count == 0

    async def test_track_works_after_cancel_all(self) -> None:
        p = PendingCalls()
        p.track(1, "m")
        p.cancel_all()
        fut = p.track(2, "m")
        assert isinstance(fut, asyncio.Future)
        assert p.pending_count == 1

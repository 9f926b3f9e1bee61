"""Tests for request cancellation."""

from __future__ import annotations

import asyncio

import pytest

from hookfetch.client.cancel import CancelReason, CancelToken, OperationCancelled


class TestCancelToken:
    """Tests for CancelToken."""

    def test_cancel_once(self) -> None:
        """Test only the first cancel takes effect."""
        token = CancelToken()

        assert token.cancel(CancelReason.USER_REQUEST, source="test") is True
        assert token.cancel(CancelReason.TIMEOUT) is False
        assert token.is_cancelled
        assert token.reason is CancelReason.USER_REQUEST
        assert token.state.metadata == {"source": "test"}
        assert token.state.timestamp is not None

    @pytest.mark.asyncio
    async def test_run_returns_result(self) -> None:
        """Test run passes the awaited result through."""
        token = CancelToken()

        async def work():
            return 42

        assert await token.run(work()) == 42

    @pytest.mark.asyncio
    async def test_run_already_cancelled(self) -> None:
        """Test run refuses to start when already cancelled."""
        token = CancelToken()
        token.cancel()

        async def work():
            return 42

        with pytest.raises(OperationCancelled) as exc_info:
            await token.run(work())
        assert exc_info.value.reason is CancelReason.USER_REQUEST

    @pytest.mark.asyncio
    async def test_timeout_cancels(self) -> None:
        """Test the timeout timer cancels pending work."""
        token = CancelToken()
        token.start_timeout(0.01)

        with pytest.raises(OperationCancelled) as exc_info:
            await token.run(asyncio.sleep(5))

        assert exc_info.value.reason is CancelReason.TIMEOUT
        assert token.state.metadata["timeout_seconds"] == 0.01

    @pytest.mark.asyncio
    async def test_clear_timeout(self) -> None:
        """Test a cleared timer never fires."""
        token = CancelToken()
        token.start_timeout(0.01)
        token.clear_timeout()

        await asyncio.sleep(0.03)

        assert not token.is_cancelled

    @pytest.mark.asyncio
    async def test_wait(self) -> None:
        """Test wait returns the reason once cancelled."""
        token = CancelToken()
        asyncio.get_running_loop().call_soon(token.cancel)

        assert await token.wait() is CancelReason.USER_REQUEST

"""
Request cancellation control.

Each request owns one CancelToken. The request timeout and the caller both
cancel through it; the recorded reason tells the two apart.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable

T = TypeVar("T")


class CancelReason(str, Enum):
    """Reasons for cancellation."""

    USER_REQUEST = "user_request"
    TIMEOUT = "timeout"


@dataclass
class CancelState:
    """State of a cancellation token.

    Attributes:
        cancelled: Whether cancellation was requested
        reason: Reason for cancellation
        timestamp: Time of cancellation
    """

    cancelled: bool = False
    reason: CancelReason | None = None
    timestamp: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class OperationCancelled(Exception):
    """Raised by ``CancelToken.run`` when the token fires first."""

    def __init__(self, reason: CancelReason) -> None:
        super().__init__(f"operation cancelled: {reason.value}")
        self.reason = reason


class CancelToken:
    """Cancellation token for one request.

    Example:
        >>> token = CancelToken()
        >>> token.start_timeout(5.0)
        >>> response = await token.run(transport(request))
        >>> token.clear_timeout()
    """

    def __init__(self) -> None:
        self._state = CancelState()
        self._event = asyncio.Event()
        self._timeout_task: asyncio.Task[None] | None = None

    def start_timeout(self, seconds: float) -> None:
        """Cancel with ``CancelReason.TIMEOUT`` after ``seconds``.

        Must be called from a running event loop.
        """
        self.clear_timeout()

        async def timeout_handler() -> None:
            await asyncio.sleep(seconds)
            self.cancel(CancelReason.TIMEOUT, timeout_seconds=seconds)

        self._timeout_task = asyncio.get_running_loop().create_task(timeout_handler())

    def clear_timeout(self) -> None:
        """Stop a pending timeout timer, if any."""
        if self._timeout_task is not None and not self._timeout_task.done():
            self._timeout_task.cancel()
        self._timeout_task = None

    def cancel(
        self,
        reason: CancelReason = CancelReason.USER_REQUEST,
        **metadata: Any,
    ) -> bool:
        """Request cancellation.

        Returns:
            True if cancellation was newly requested, False if already cancelled
        """
        if self._state.cancelled:
            return False

        self._state.cancelled = True
        self._state.reason = reason
        self._state.timestamp = time.time()
        self._state.metadata.update(metadata)
        self._event.set()

        if reason is not CancelReason.TIMEOUT:
            self.clear_timeout()
        return True

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._state.cancelled

    @property
    def reason(self) -> CancelReason | None:
        """Get cancellation reason."""
        return self._state.reason

    @property
    def state(self) -> CancelState:
        """Get full cancellation state."""
        return self._state

    async def wait(self) -> CancelReason:
        """Wait until cancellation is requested."""
        await self._event.wait()
        return self._state.reason or CancelReason.USER_REQUEST

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        Raises:
            OperationCancelled: When the token was cancelled before completion
        """
        if self._state.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelled(self._state.reason or CancelReason.USER_REQUEST)

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except BaseException:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        raise OperationCancelled(self._state.reason or CancelReason.USER_REQUEST)

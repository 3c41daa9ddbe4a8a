"""Cancellation support for long-running compose operations.

Contains:
- OperationCancelledError: Raised when a checkpoint observes cancellation
- CancellationToken: Per-operation cancellation flag with a dispose lifecycle
- run_cancellable: Run a blocking callable in a thread, racing a token
"""

import asyncio
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")


class OperationCancelledError(Exception):
    """Raised when an operation observes that it was cancelled."""

    pass


class CancellationToken:
    """Cancellation flag owned by one operation.

    The session creates a token per request and disposes it once the
    operation settles. Cancelling a disposed token does nothing, but an
    operation still holding the token keeps seeing the last state.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._disposed = False
        self._event: Optional[asyncio.Event] = None

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled

    @property
    def disposed(self) -> bool:
        return self._disposed

    def cancel(self) -> bool:
        """Request cancellation.

        Returns:
            True if this call changed the token's state.
        """
        if self._disposed or self._cancelled:
            return False
        self._cancelled = True
        if self._event is not None:
            self._event.set()
        return True

    def dispose(self) -> None:
        self._disposed = True

    def raise_if_cancelled(self) -> None:
        """Checkpoint: raise OperationCancelledError if cancelled."""
        if self._cancelled:
            raise OperationCancelledError()

    async def wait(self) -> None:
        """Wait until cancellation is requested."""
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        await self._event.wait()


async def run_cancellable(token: CancellationToken, func: Callable[..., T], *args: Any) -> T:
    """Run func(*args) in a worker thread until it finishes or token is cancelled.

    A blocking call cannot be interrupted, so on cancellation its eventual
    result is discarded.

    Raises:
        OperationCancelledError: If the token is cancelled first.
    """
    token.raise_if_cancelled()

    call = asyncio.ensure_future(asyncio.to_thread(func, *args))
    waiter = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()

    if token.is_cancellation_requested:
        # Retrieve any exception so it is not reported as never retrieved
        call.add_done_callback(_discard_result)
        raise OperationCancelledError()

    return call.result()


def _discard_result(future: "asyncio.Future[Any]") -> None:
    if not future.cancelled():
        future.exception()

"""Cooperative cancellation for pipeline runs."""

import asyncio
import inspect
from typing import Awaitable, Optional, TypeVar

from ..errors import CancellationError

T = TypeVar("T")


class CancellationToken:
    """A one-shot cancellation signal.

    Child tokens are cancelled together with their parent, which lets a
    single poll loop be abandoned without cancelling the whole run.
    """

    def __init__(self, parent: Optional["CancellationToken"] = None) -> None:
        self._event = asyncio.Event()
        self._children: list["CancellationToken"] = []
        if parent is not None:
            parent._children.append(self)
            if parent.cancelled:
                self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()
        for child in self._children:
            child.cancel()

    def child(self) -> "CancellationToken":
        return CancellationToken(parent=self)

    def raise_if_cancelled(self, message: str = "Pipeline cancelled") -> None:
        if self.cancelled:
            raise CancellationError(message)

    async def guard(self, awaitable: Awaitable[T], message: str = "Pipeline cancelled") -> T:
        """Await ``awaitable`` unless the token is cancelled first.

        Raises:
            CancellationError: If the token is cancelled before the work
                finishes. The work is cancelled and awaited.
        """
        if self.cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise CancellationError(message)
        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            work.cancel()
            raise
        finally:
            waiter.cancel()
        if not work.done():
            work.cancel()
            try:
                await work
            except asyncio.CancelledError:
                if not work.cancelled():
                    raise
            raise CancellationError(message)
        return work.result()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``, waking early on cancellation.

        Returns:
            True if the token was cancelled.
        """
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

"""Cancellation token threaded through the network stages of a run."""

import asyncio
from typing import Awaitable, Optional, TypeVar

from .errors import PipelineCancelled

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal shared between a caller and a run."""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled by caller") -> None:
        """Fire the token. Later calls keep the first reason."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelled(self.reason or "cancelled")

    async def wait(self) -> None:
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        When the token fires the in-flight operation is cancelled and
        ``PipelineCancelled`` is raised.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_cancelled()
        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.wait())
        try:
            done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()

        if work in done:
            return work.result()

        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        raise PipelineCancelled(self.reason or "cancelled")


async def guarded(token: Optional[CancellationToken], awaitable: Awaitable[T]) -> T:
    """Await through ``token`` when one is given."""
    if token is None:
        return await awaitable
    return await token.guard(awaitable)

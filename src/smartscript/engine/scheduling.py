"""Debounced reprocessing for hosts that mutate content repeatedly.

The tree processor itself never tracks in-flight work; coalescing bursts
of "content changed" notifications into one pass is the host's job, and
this helper does it on the running asyncio loop.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class DebouncedProcessor:
    """Run *callback* once, *delay_ms* after the last ``schedule()`` call.

    Attributes:
        delay_ms: Quiet period in milliseconds before the callback fires.
        runs: Number of times the callback has completed.
    """

    def __init__(
        self,
        callback: Callable[[], None] | Callable[[], Awaitable[None]],
        delay_ms: int = 100,
    ) -> None:
        self._callback = callback
        self.delay_ms = max(0, delay_ms)
        self._pending: asyncio.Task[None] | None = None
        self.runs = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def schedule(self) -> None:
        """Schedule or reschedule the callback. Requires a running loop."""
        self.cancel()

        async def debounced_run() -> None:
            await asyncio.sleep(self.delay_ms / 1000)
            await self._run()

        self._pending = asyncio.create_task(debounced_run())

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        task = self._pending
        self._pending = None
        if task is not None and not task.done():
            task.cancel()

    async def flush(self) -> None:
        """Run the callback now if a call is pending."""
        if self.pending:
            self.cancel()
            await self._run()

    async def _run(self) -> None:
        try:
            result = self._callback()
            if inspect.isawaitable(result):
                await result
            self.runs += 1
        except Exception:
            logger.exception("Debounced processing failed")

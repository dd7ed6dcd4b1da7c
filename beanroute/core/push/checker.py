"""Periodic subscription drift check.

Re-runs reconciliation on a fixed interval so that changes made outside the
app (e.g. permission revoked in browser settings) show up without user action.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class ConsistencyChecker:
    """Owns one background task that calls ``check`` every ``interval`` seconds.

    ``is_active`` is evaluated before each tick; once it reports False the
    task ends on its own, so a logout that lands between ticks never triggers
    another status request.
    """

    def __init__(
        self,
        is_active: Callable[[], bool],
        check: Callable[[], Awaitable[object]],
        interval: float = 30.0,
    ) -> None:
        self.is_active = is_active
        self.check = check
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="push-consistency-check")
        logger.debug("Push consistency checker started (interval=%ss)", self.interval)

    def cancel(self) -> None:
        """Request cancellation without waiting for the task to unwind."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Push consistency checker stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)

            if not self.is_active():
                logger.debug("Push consistency checker no longer active, cancelling itself")
                self._task = None
                return

            try:
                await self.check()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning("Push consistency check failed: %s", e)

"""Cancellable periodic activity on the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

log = logging.getLogger(__name__)


class PeriodicTask:
    """Runs ``callback`` every ``interval_s`` seconds until cancelled.

    Ticks are scheduled against fixed deadlines on the loop clock, so a slow
    callback does not stretch the period. Ticks never overlap: the callback is
    awaited, and deadlines it ran past are skipped rather than queued. A tick
    that raises is logged and the loop keeps going; the next tick is the retry.
    """

    def __init__(
        self,
        name: str,
        interval_s: float,
        callback: Callable[[], Awaitable[None]],
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.name = name
        self.interval_s = float(interval_s)
        self._callback = callback
        self._task: Optional[asyncio.Task] = None
        self._log = logger or log
        self.ticks = 0
        self.failures = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, *, immediate: bool = True) -> None:
        """Schedule the loop on the running event loop (no-op if already running)."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(immediate), name=self.name)
        self._log.debug("%s started (every %.2fs)", self.name, self.interval_s)

    def cancel(self) -> None:
        """Stop the loop. Safe to call repeatedly."""
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            self._log.debug("%s cancelled after %d ticks", self.name, self.ticks)

    async def _run(self, immediate: bool) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() + (0.0 if immediate else self.interval_s)
        while True:
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            self.ticks += 1
            try:
                await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.failures += 1
                self._log.warning("%s tick %d failed: %s", self.name, self.ticks, e)
            next_at += self.interval_s
            now = loop.time()
            if next_at < now and self.interval_s > 0:
                missed = int((now - next_at) // self.interval_s) + 1
                next_at += missed * self.interval_s
                self._log.debug("%s overran, skipping %d tick(s)", self.name, missed)

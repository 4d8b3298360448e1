"""
Cancellable interval timer for continuous scanning.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, Optional


class IntervalTimer:
    """
    Runs an async callback every `interval` seconds until cancelled.

    The first call happens one interval after start(). Callback errors are
    logged and do not stop the timer.
    """

    def __init__(self, interval: float, callback: Callable[[], Awaitable[Any]], name: str = "interval-timer"):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.name = name
        self._callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_active:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logging.debug(f"{self.name} started (interval={self.interval}s)")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self._callback()
            except Exception as e:
                logging.warning(f"{self.name} callback error: {e}")

    def cancel(self) -> None:
        """Request cancellation without waiting for it."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logging.debug(f"{self.name} cancelled")

    async def cancel_and_wait(self) -> None:
        """Cancel and wait until the timer task has finished."""
        task = self._task
        self.cancel()
        if task is None or task is asyncio.current_task():
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task

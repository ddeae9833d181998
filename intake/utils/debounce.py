"""Asyncio debouncer for keystroke-driven lookups."""

import asyncio
from typing import Awaitable, Callable, Optional

from loguru import logger


class Debouncer:
    """
    Run a coroutine only after a quiet period with no further calls.

    Every ``trigger`` cancels the pending timer and starts a new one. An
    action that has already fired is left to finish; callers discard its
    result with a generation token if it went stale.
    """

    def __init__(self, delay: float, name: str = "debounce"):
        """
        Initialize debouncer.

        Args:
            delay: Quiet period in seconds
            name: Label used in log messages
        """
        self.delay = delay
        self.name = name
        self._timer: Optional[asyncio.Task] = None

    def trigger(self, action: Callable[[], Awaitable[None]]) -> asyncio.Task:
        """
        Schedule ``action`` after the quiet period, replacing any pending one.

        Must be called from inside a running event loop.

        Returns:
            The task that sleeps and then runs the action
        """
        self.cancel()
        task = asyncio.get_running_loop().create_task(self._run(action))
        self._timer = task
        return task

    def cancel(self) -> None:
        """Cancel the pending timer if it has not fired yet."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _run(self, action: Callable[[], Awaitable[None]]) -> None:
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            logger.debug(f"{self.name}: superseded before firing")
            raise
        # Fired: a later trigger must not cancel the running action
        if self._timer is asyncio.current_task():
            self._timer = None
        await action()

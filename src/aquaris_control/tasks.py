"""Cancellable scheduled tasks with explicit start/stop handles."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

Action = Callable[[], Any]


async def _invoke(action: Action) -> None:
    result = action()
    if inspect.isawaitable(result):
        await result


class PeriodicTask:
    """Run an async callback every ``interval`` seconds until stopped.

    The first run happens one interval after ``start()``. A failing callback
    is logged and the schedule continues.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[Any]],
        interval: float,
        *,
        name: str = "periodic",
    ) -> None:
        """Create a stopped task."""
        self._callback = callback
        self._interval = interval
        self._name = name
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        """Return whether the task is scheduled."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the task; no-op when already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self._name)

    async def _run(self) -> None:
        try:
            while True:
                await asyncio.sleep(self._interval)
                try:
                    await self._callback()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("%s task failed; continuing", self._name)
        except asyncio.CancelledError:
            logger.debug("%s task cancelled", self._name)
            raise

    async def stop(self) -> None:
        """Cancel the task and wait until it has finished."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


class RepeatingAction:
    """Press-and-hold helper: fire once immediately, then every ``interval``.

    Starting a new repeat cancels the active one first, so two repeats never
    overlap.
    """

    def __init__(self, interval: float) -> None:
        """Create an idle repeater."""
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        """Return whether an action is currently repeating."""
        return self._task is not None and not self._task.done()

    def start(self, action: Action) -> None:
        """Begin repeating ``action``."""
        self.stop()
        self._task = asyncio.create_task(self._run(action), name="repeat")

    async def _run(self, action: Action) -> None:
        while True:
            try:
                await _invoke(action)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Repeated action failed")
            await asyncio.sleep(self._interval)

    def stop(self) -> None:
        """Stop repeating; the current run is cancelled at its next await."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()

    async def aclose(self) -> None:
        """Stop repeating and wait for the task to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

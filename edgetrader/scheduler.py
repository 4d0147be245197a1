"""
Periodic cycle driver.

Runs an async cycle immediately and then every `interval_seconds`.
Cancelling stops future cycles; a cycle already running is left to finish.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from .utils.logger import get_logger

logger = get_logger("scheduler")

Cycle = Callable[[], Awaitable[object]]


class PeriodicDriver:
    """
    Drives one trader's cycle on a fixed interval.

    Usage:
        driver = PeriodicDriver(trader.run_cycle, 30.0, name="spot")
        driver.start()
        ...
        driver.cancel()
        await driver.wait()
    """

    def __init__(self, cycle: Cycle, interval_seconds: float, name: str = "cycle"):
        self.cycle = cycle
        self.interval_seconds = interval_seconds
        self.name = name

        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self.cycles_run = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> None:
        """Run a single cycle; errors are logged, never raised."""
        try:
            await self.cycle()
        except Exception as e:
            logger.error(f"{self.name} cycle error: {e}")
        finally:
            self.cycles_run += 1

    async def _run(self) -> None:
        logger.info(f"{self.name} driver started", extra={"interval_seconds": self.interval_seconds})
        while not self._stop_event.is_set():
            await self.run_once()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info(f"{self.name} driver stopped", extra={"cycles_run": self.cycles_run})

    def start(self) -> asyncio.Task:
        """Schedule the loop on the running event loop."""
        if self.running:
            return self._task
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name=f"{self.name}-driver")
        return self._task

    def cancel(self) -> None:
        """Stop scheduling new cycles."""
        self._stop_event.set()

    async def wait(self) -> None:
        """Wait for the loop, including any in-flight cycle, to end."""
        if self._task:
            await self._task

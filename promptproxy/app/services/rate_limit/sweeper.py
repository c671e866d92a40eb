"""Periodic eviction of expired rate limit entries.

Bounds memory growth when many distinct clients each send a few
requests and never return.
"""

import asyncio
from typing import Optional

from promptproxy.app.core.logging import get_logger
from promptproxy.app.services.rate_limit.backends import RateLimitBackend

logger = get_logger(__name__)


class RateLimitSweeper:
    """Runs ``backend.cleanup()`` on a fixed interval in the background.

    Usage:
        sweeper = RateLimitSweeper(limiter, interval=60.0)
        await sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(self, backend: RateLimitBackend, interval: float = 60.0):
        """Initialize the sweeper.

        Args:
            backend: Rate limit backend to sweep
            interval: Seconds between sweeps
        """
        self._backend = backend
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._task is not None:
            logger.debug("Rate limit sweeper already running")
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started rate limit sweeper (interval: {self._interval}s)")

    async def stop(self) -> None:
        """Stop the background sweep task."""
        if self._task is None:
            return

        self._stop_event.set()

        try:
            await asyncio.wait_for(self._task, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Rate limit sweeper did not stop gracefully, cancelling")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
            logger.info("Stopped rate limit sweeper")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                # Interval elapsed
                pass
            else:
                break

            try:
                await self._backend.cleanup()
            except Exception as e:
                logger.error(f"Error during rate limit sweep: {e}")

"""Local throttle for outbound API calls."""

import asyncio
import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window throttle: at most ``max_calls`` acquisitions per ``period`` seconds.

    The window opens on the first call after the previous one expired.
    Callers over the limit sleep until the window closes. Only the waiting
    coroutine is suspended, never the event loop.
    """

    def __init__(self, max_calls: int, period: float, clock: Callable[[], float] = time.monotonic):
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        if period <= 0:
            raise ValueError("period must be positive")
        self.max_calls = max_calls
        self.period = period
        self._clock = clock
        self._window_start = None
        self._count = 0
        self._lock = None

    async def acquire(self) -> None:
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            while True:
                now = self._clock()
                if self._window_start is None or now - self._window_start >= self.period:
                    self._window_start = now
                    self._count = 0
                if self._count < self.max_calls:
                    self._count += 1
                    return
                delay = self._window_start + self.period - now
                logger.info(f"Rate limit reached, waiting {delay:.2f}s")
                await asyncio.sleep(delay)

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

__all__ = ["RateLimiter", "WINDOW_SECONDS"]

HTTP_LOG = logging.getLogger("relay.http")

WINDOW_SECONDS = 60.0


class RateLimiter:
    """Self-resetting 60 second window capped at ``max_requests``.

    ``acquire`` never rejects; once the window is full it sleeps until the
    window ends, then starts a new one.
    """

    def __init__(
        self,
        max_requests: int,
        *,
        window: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        label: str = "api",
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.max_requests = int(max_requests)
        self.window = float(window)
        self.label = label
        self._clock = clock
        self._sleep = sleep
        self.window_start = clock()
        self.count = 0

    async def acquire(self) -> None:
        now = self._clock()
        elapsed = now - self.window_start

        if elapsed < self.window:
            if self.count >= self.max_requests:
                wait_time = self.window - elapsed
                HTTP_LOG.info("%s rate limit reached; waiting %.1fs", self.label, wait_time)
                await self._sleep(wait_time)
                self.count = 0
                self.window_start = self._clock()
        else:
            self.count = 0
            self.window_start = now

        self.count += 1

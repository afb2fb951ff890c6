"""Token-bucket admission control for remote model backends."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable

from careerbench.core.logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Token bucket allowing ``capacity`` requests per ``window`` seconds.

    Tokens refill continuously in proportion to elapsed time and are capped
    at ``capacity``. State is process-local and guarded by a single lock that
    covers only the refill/check/decrement critical section; waiting happens
    outside the lock.
    """

    def __init__(
        self,
        capacity: int,
        window: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if window <= 0:
            raise ValueError("window must be positive")
        self._capacity = capacity
        self._window = window
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._last_refill = clock()
        self._lock = asyncio.Lock()

    @classmethod
    def openai_default(cls) -> RateLimiter:
        return cls(50, 60.0)

    @classmethod
    def anthropic_default(cls) -> RateLimiter:
        return cls(50, 60.0)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def window(self) -> float:
        return self._window

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last_refill
        if elapsed <= 0:
            return
        self._tokens = min(
            float(self._capacity),
            self._tokens + elapsed / self._window * self._capacity,
        )
        self._last_refill = now

    async def acquire(self) -> None:
        """Wait until a token is available, then consume it."""
        while True:
            async with self._lock:
                self._refill()
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return
                wait = (1.0 - self._tokens) * self._window / self._capacity

            logger.debug("Rate limit reached, waiting for token", wait_seconds=round(wait, 3))
            await self._sleep(wait)

    async def try_acquire(self) -> bool:
        """Consume a token if one is available; never waits."""
        async with self._lock:
            self._refill()
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            return False

    async def available_tokens(self) -> float:
        async with self._lock:
            self._refill()
            return self._tokens

"""Shared pacing and retry helpers for the outbound search clients."""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


@dataclass
class RetryConfig:
    max_attempts: int = 3
    backoff_seconds: float = 1.0

    def delay_for(self, attempt: int) -> float:
        """Linear backoff: the n-th retry waits ``n * backoff_seconds``."""
        return self.backoff_seconds * attempt


class LoopLocks:
    """Hands out one ``asyncio.Lock`` per running event loop.

    The lock is created inside the running loop, so owners may be built
    before any loop starts.
    """

    def __init__(self) -> None:
        self._lock: Optional[asyncio.Lock] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def get(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._loop is not loop:
            self._lock = asyncio.Lock()
            self._loop = loop
        return self._lock


class RateLimiter:
    """Spaces consecutive calls at least ``min_interval`` seconds apart.

    One limiter belongs to one client; concurrent callers queue on a lock
    owned by the running event loop.
    """

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._last_call: Optional[float] = None
        self._locks = LoopLocks()

    async def wait(self) -> None:
        async with self._locks.get():
            if self._last_call is not None:
                remaining = self.min_interval - (self._clock() - self._last_call)
                if remaining > 0:
                    await self._sleep(remaining)
            self._last_call = self._clock()

"""
Sliding-window rate limiter shared by every outbound request

Admission is serialized with an asyncio.Lock so the window check and the
recording of a call start happen as one step. Waiting happens outside the
lock, and the window is re-checked after every wait since other callers
may have been admitted in the meantime.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque, List, Optional

from .config import RateLimitConfig

logger = logging.getLogger(__name__)


class RateLimiter:
    """Bounds call starts to max_calls within any trailing time_window"""

    def __init__(self, max_calls: int = 5, time_window: float = 10.0, buffer: float = 1.0,
                 clock: Optional[Callable[[], float]] = None,
                 sleep: Optional[Callable[[float], Awaitable[None]]] = None):
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        if time_window <= 0:
            raise ValueError("time_window must be positive")

        self.max_calls = max_calls
        self.time_window = time_window
        self.buffer = buffer

        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._calls: Deque[float] = deque()
        self._lock = asyncio.Lock()

    async def admit(self):
        """Wait until a call may start, then record it"""
        while True:
            async with self._lock:
                now = self._clock()
                self._prune(now)

                if len(self._calls) < self.max_calls:
                    self._calls.append(now)
                    return

                wait_time = self.time_window - (now - self._calls[0]) + self.buffer

            logger.debug(f"Rate limit reached ({self.max_calls}/{self.time_window}s), waiting {wait_time:.2f}s")
            await self._sleep(max(wait_time, 0))

    def _prune(self, now: float):
        """Drop call starts that have left the window"""
        while self._calls and now - self._calls[0] >= self.time_window:
            self._calls.popleft()

    def recent_calls(self) -> List[float]:
        """Call starts still inside the window"""
        self._prune(self._clock())
        return list(self._calls)


def create_rate_limiter(config: RateLimitConfig) -> RateLimiter:
    """Create the process-wide rate limiter from configuration"""
    return RateLimiter(
        max_calls=config.max_calls,
        time_window=config.time_window,
        buffer=config.buffer
    )

"""
Rate Limiter Utility - per-event-loop rate limiting for upstream APIs.

Each request to the add-on runs on its own event loop (see async_runner), and
background catalog rebuilds run on a loop in their own thread. An
AsyncLimiter is bound to the loop it was first used on, so limiters are kept
per (max_rate, time_period, loop) and recreated when a loop mismatch shows up.

The budget is therefore per event loop, not per process: concurrent requests
and a background rebuild each get their own 20/10 s allowance. Bulk traffic
stays within one budget because only one catalog build runs at a time.

Usage:
    from utils.rate_limiter import get_rate_limiter

    # TVmaze allows 20 calls every 10 seconds per IP
    limiter = get_rate_limiter(max_rate=20, time_period=10)

    async with limiter:
        ...
"""

from __future__ import annotations

import asyncio
import threading
import weakref
from typing import Any

from aiolimiter import AsyncLimiter

from utils.get_logger import get_logger

logger = get_logger(__name__)

_lock = threading.Lock()

# loop -> {(max_rate, time_period): limiter}; entries go away with their loop
_limiters: weakref.WeakKeyDictionary[
    asyncio.AbstractEventLoop, dict[tuple[int, float], ResilientRateLimiter]
] = weakref.WeakKeyDictionary()


def _current_loop() -> asyncio.AbstractEventLoop:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        try:
            return asyncio.get_event_loop()
        except RuntimeError:
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            return loop


class ResilientRateLimiter:
    """
    Wrapper around AsyncLimiter that survives event loop changes.

    If acquiring a token fails because the underlying limiter belongs to a
    different loop, a fresh limiter is created for the current loop and the
    acquire is retried once.
    """

    def __init__(self, max_rate: int, time_period: float):
        self.max_rate = max_rate
        self.time_period = time_period
        self._limiter: AsyncLimiter | None = None
        self._loop_id: int | None = None

    def _ensure_limiter(self) -> AsyncLimiter:
        current_loop_id = id(_current_loop())
        if self._limiter is None or self._loop_id != current_loop_id:
            self._limiter = AsyncLimiter(self.max_rate, self.time_period)
            self._loop_id = current_loop_id
            logger.debug(
                f"Created rate limiter for loop {current_loop_id}: "
                f"{self.max_rate} requests per {self.time_period}s"
            )
        return self._limiter

    async def __aenter__(self) -> ResilientRateLimiter:
        max_attempts = 2
        for attempt in range(max_attempts):
            try:
                await self._ensure_limiter().acquire()
                return self
            except RuntimeError as e:
                error_msg = str(e).lower()
                if ("loop" in error_msg or "future" in error_msg) and attempt < max_attempts - 1:
                    logger.warning(f"Rate limiter loop mismatch, recreating limiter: {e}")
                    self._limiter = None
                    self._loop_id = None
                    continue
                raise
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        # AsyncLimiter tokens drain with time; nothing to release
        return None


def get_rate_limiter(max_rate: int, time_period: float = 1.0) -> ResilientRateLimiter:
    """
    Get or create the rate limiter for an API configuration on the current loop.

    Args:
        max_rate: Maximum number of requests allowed per period
        time_period: Period length in seconds (default: 1.0)

    Returns:
        ResilientRateLimiter shared by every request with the same configuration
    """
    loop = _current_loop()
    cache_key = (max_rate, time_period)

    with _lock:
        loop_limiters = _limiters.setdefault(loop, {})
        limiter = loop_limiters.get(cache_key)
        if limiter is None:
            limiter = ResilientRateLimiter(max_rate, time_period)
            loop_limiters[cache_key] = limiter
            logger.debug(f"Registered rate limiter {max_rate}/{time_period}s for loop {id(loop)}")

    return limiter


def reset_rate_limiters() -> None:
    """Forget every registered limiter."""
    with _lock:
        _limiters.clear()

"""Rate limit backends.

Only a process-local backend is provided: state lives in one process's
memory and is not shared between workers or hosts.
"""

import asyncio
import math
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict

from promptproxy.app.core.logging import get_logger
from promptproxy.app.services.rate_limit.models import RateLimitEntry, RateLimitResult

logger = get_logger(__name__)


class RateLimitBackend(ABC):
    """Abstract base class for rate limit backends."""

    @abstractmethod
    async def check_limit(self, identifier: str) -> RateLimitResult:
        """Record a request for the identifier and decide admission.

        Args:
            identifier: Rate limit bucket key (usually the client address)

        Returns:
            RateLimitResult with allowed status and metadata
        """

    @abstractmethod
    async def reset(self, identifier: str) -> None:
        """Forget all state for the identifier."""

    @abstractmethod
    async def cleanup(self) -> int:
        """Remove expired entries and return how many were removed."""


class InMemoryRateLimiter(RateLimitBackend):
    """Fixed-window rate limiter keyed by identifier.

    Each identifier gets ``max_requests`` admissions per window. The
    window starts with the first request and is replaced by a fresh one
    on the first request after it has expired.

    A single asyncio.Lock serializes check_limit, reset and cleanup so
    two concurrent requests for the same identifier can never both be
    admitted past the quota.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize rate limiter.

        Args:
            max_requests: Admissions allowed per identifier per window
            window_seconds: Window length in seconds
            clock: Time source returning epoch seconds
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = asyncio.Lock()

    async def check_limit(self, identifier: str) -> RateLimitResult:
        async with self._lock:
            now = self._clock()
            entry = self._entries.get(identifier)

            # First request, or the previous window has expired
            if entry is None or now > entry.reset_time:
                entry = RateLimitEntry(count=1, reset_time=now + self.window_seconds)
                self._entries[identifier] = entry
                return RateLimitResult(
                    allowed=True,
                    limit=self.max_requests,
                    remaining=self.max_requests - 1,
                    reset_time=entry.reset_time,
                )

            if entry.count < self.max_requests:
                entry.count += 1
                return RateLimitResult(
                    allowed=True,
                    limit=self.max_requests,
                    remaining=self.max_requests - entry.count,
                    reset_time=entry.reset_time,
                )

            return RateLimitResult(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                reset_time=entry.reset_time,
                retry_after=max(0, math.ceil(entry.reset_time - now)),
            )

    async def reset(self, identifier: str) -> None:
        async with self._lock:
            self._entries.pop(identifier, None)

    async def cleanup(self) -> int:
        async with self._lock:
            now = self._clock()
            expired = [
                key for key, entry in self._entries.items()
                if now > entry.reset_time
            ]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug(f"Evicted {len(expired)} expired rate limit entries")
        return len(expired)

    def get_stats(self) -> Dict[str, int]:
        """Current limiter stats for monitoring."""
        return {
            "total_identifiers": len(self._entries),
            "max_requests": self.max_requests,
            "window_ms": int(self.window_seconds * 1000),
        }

"""Per-client rate limiting for the optimize endpoint.

Fixed-window counters held in process memory, plus a background sweeper
that evicts expired windows.
"""

from promptproxy.app.services.rate_limit.backends import (
    InMemoryRateLimiter,
    RateLimitBackend,
)
from promptproxy.app.services.rate_limit.models import RateLimitEntry, RateLimitResult
from promptproxy.app.services.rate_limit.sweeper import RateLimitSweeper

__all__ = [
    "RateLimitResult",
    "RateLimitEntry",
    "RateLimitBackend",
    "InMemoryRateLimiter",
    "RateLimitSweeper",
]

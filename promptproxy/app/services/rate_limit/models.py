"""Rate limiting data models.

This module contains dataclasses for rate limit state and results.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class RateLimitResult:
    """Result of a rate limit check.

    ``reset_time`` is an absolute epoch timestamp in seconds.
    """
    allowed: bool
    limit: int
    remaining: int
    reset_time: float
    retry_after: Optional[int] = None


@dataclass
class RateLimitEntry:
    """Fixed-window state for one identifier."""
    count: int
    reset_time: float

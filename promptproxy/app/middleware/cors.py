"""
CORS headers for the optimize endpoint.

The allowed origin is always one concrete value from the allow-list:
a recognized Origin is echoed back, anything else gets the first
allow-listed origin. Wildcards are never sent.
"""
from typing import Dict, Optional, Sequence

ALLOWED_METHODS = "POST, OPTIONS"


def get_cors_headers(origin: Optional[str], allowed_origins: Sequence[str]) -> Dict[str, str]:
    """Build CORS response headers for a request origin.

    Args:
        origin: Value of the request's Origin header, if any
        allowed_origins: Non-empty allow-list; the first entry is the fallback

    Returns:
        Header dict to merge into the response
    """
    is_allowed = origin is not None and origin in allowed_origins

    return {
        "Access-Control-Allow-Origin": origin if is_allowed else allowed_origins[0],
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Expose-Headers": (
            "X-Request-ID, X-RateLimit-Limit, X-RateLimit-Remaining, "
            "X-RateLimit-Reset, Retry-After"
        ),
        "Access-Control-Max-Age": "86400",
        "Vary": "Origin",
    }

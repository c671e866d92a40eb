"""Shared HTTP client management for connection pooling.

The client is created in the application lifespan and handed to the
provider so every optimize call reuses the same connection pool.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx

from promptproxy.app.core.config import Settings, settings as default_settings


def build_timeout(config: Settings) -> httpx.Timeout:
    """Granular timeouts: connect, read, write and pool acquisition."""
    return httpx.Timeout(
        connect=config.httpx_connect_timeout,
        read=config.httpx_read_timeout,
        write=config.httpx_write_timeout,
        pool=config.httpx_pool_timeout,
    )


@asynccontextmanager
async def init_http_client(
    config: Optional[Settings] = None,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create the shared HTTP client and close it on exit.

    Usage in the FastAPI lifespan:

        async with init_http_client(settings) as http_client:
            yield
    """
    config = config or default_settings
    limits = httpx.Limits(
        max_connections=config.httpx_max_connections,
        max_keepalive_connections=config.httpx_max_keepalive_connections,
        keepalive_expiry=config.httpx_keepalive_expiry,
    )
    client = httpx.AsyncClient(timeout=build_timeout(config), limits=limits)
    try:
        yield client
    finally:
        await client.aclose()

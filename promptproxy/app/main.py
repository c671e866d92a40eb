import traceback
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from promptproxy.app.api.optimize import router as optimize_router
from promptproxy.app.core.config import Settings, settings as default_settings, validate_environment
from promptproxy.app.core.http_client import init_http_client
from promptproxy.app.core.logging import get_logger, setup_logging
from promptproxy.app.middleware.cors import get_cors_headers
from promptproxy.app.middleware.request_id import RequestIdMiddleware, get_request_id
from promptproxy.app.middleware.request_size import RequestSizeLimitMiddleware
from promptproxy.app.providers.base import BaseProvider
from promptproxy.app.providers.factory import create_provider
from promptproxy.app.services.optimization import OptimizationGateway
from promptproxy.app.services.rate_limit import (
    InMemoryRateLimiter,
    RateLimitBackend,
    RateLimitSweeper,
)


def create_app(
    config: Optional[Settings] = None,
    provider: Optional[BaseProvider] = None,
    rate_limiter: Optional[RateLimitBackend] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Settings to use (defaults to the environment-loaded settings)
        provider: Provider override; skips credential validation when given
        rate_limiter: Rate limiter override

    Returns:
        Configured FastAPI application instance
    """
    config = config or default_settings

    setup_logging(config)
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan context manager.

        Builds the provider, rate limiter and gateway on startup, runs the
        rate limit sweeper while the app is up, and releases the shared
        HTTP client on shutdown.
        """
        async with init_http_client(config) as http_client:
            active_provider = provider
            if active_provider is None:
                validate_environment(config)
                active_provider = create_provider(config, http_client)

            limiter = rate_limiter or InMemoryRateLimiter(
                max_requests=config.rate_limit_max_requests,
                window_seconds=config.rate_limit_window_seconds,
            )
            sweeper = RateLimitSweeper(
                limiter, interval=config.rate_limit_cleanup_interval_seconds
            )

            app.state.provider = active_provider
            app.state.rate_limiter = limiter
            app.state.gateway = OptimizationGateway(
                limiter,
                active_provider,
                provider_timeout=config.provider_timeout_seconds,
            )

            await sweeper.start()
            logger.info(
                "Application startup complete",
                extra={
                    "provider": active_provider.name,
                    "rate_limit_max_requests": config.rate_limit_max_requests,
                    "rate_limit_window_ms": config.rate_limit_window_ms,
                    "debug_mode": config.debug,
                },
            )
            try:
                yield
            finally:
                await sweeper.stop()
                logger.info("Application shutdown complete")

    app = FastAPI(
        title="Prompt Optimizer Gateway",
        description="Rate-limited, validated proxy for prompt optimization with a hosted language model",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = config

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(
        RequestSizeLimitMiddleware,
        max_body_size=config.max_body_size,
        allowed_origins=config.allowed_origins,
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(optimize_router)

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        """Health check with rate limiter stats and provider reachability."""
        health_status: dict[str, Any] = {"status": "ok", "components": {}}

        limiter = request.app.state.rate_limiter
        if hasattr(limiter, "get_stats"):
            health_status["components"]["rate_limiter"] = {
                "status": "ok",
                **limiter.get_stats(),
            }

        active_provider: BaseProvider = request.app.state.provider
        try:
            healthy = await active_provider.health_check()
        except Exception as e:
            logger.warning(f"Provider health check raised: {e}")
            healthy = False

        if not healthy:
            health_status["status"] = "degraded"
        health_status["components"]["provider"] = {
            "status": "ok" if healthy else "error",
            "name": active_provider.name,
        }
        return health_status

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        Never returns a traceback to the client; full details are logged
        server-side. Debug mode adds the exception message.
        """
        request_id = get_request_id(request)

        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "traceback": traceback.format_exc(),
            },
        )

        content = {
            "success": False,
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again.",
            "request_id": request_id,
        }
        if config.debug:
            content["detail"] = str(exc)
            content["exception_type"] = type(exc).__name__

        headers = get_cors_headers(request.headers.get("origin"), config.allowed_origins)
        return JSONResponse(status_code=500, content=content, headers=headers)

    return app


# Create the application instance
app = create_app()

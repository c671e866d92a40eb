"""Optimization gateway.

Admits, validates and forwards one optimize request, and shapes every
outcome (success or failure) into a client-safe response. The order of
gates is fixed: rate limit, body parsing, validation, provider call.
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from promptproxy.app.core.logging import get_log_context, get_logger
from promptproxy.app.exceptions import (
    ContentBlockedError,
    GatewayException,
    MalformedRequestError,
    ProviderError,
    ProviderErrorKind,
    ProviderTimeoutError,
    ProviderUnavailableError,
    RateLimitedError,
    UnexpectedError,
    ValidationFailedError,
)
from promptproxy.app.providers.base import BaseProvider
from promptproxy.app.services.rate_limit import RateLimitBackend, RateLimitResult
from promptproxy.app.services.validators import validate_prompt

logger = get_logger(__name__)

# Fallback classifier keywords, matched case-insensitively on error text
UNAVAILABLE_KEYWORDS = ("quota", "billing")
CONFIGURATION_KEYWORDS = ("api key", "invalid")
BLOCKED_KEYWORDS = ("safety", "blocked")

_KIND_TO_EXCEPTION = {
    ProviderErrorKind.QUOTA: ProviderUnavailableError,
    ProviderErrorKind.UNAVAILABLE: ProviderUnavailableError,
    ProviderErrorKind.TIMEOUT: ProviderTimeoutError,
    ProviderErrorKind.AUTH: UnexpectedError,
    ProviderErrorKind.EMPTY_RESPONSE: UnexpectedError,
}


def format_reset_time(reset_time: float) -> str:
    """Epoch seconds to an ISO-8601 UTC timestamp with millisecond precision."""
    moment = datetime.fromtimestamp(reset_time, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def classify_provider_error(exc: BaseException) -> GatewayException:
    """Translate a provider failure into a client-safe exception.

    Structured ``ProviderError`` kinds are trusted first. For anything
    else (or an UNKNOWN kind) the error text is searched for keyword
    families as a best-effort fallback.

    Only a structured CONTENT_BLOCKED error carries the provider's
    message. Keyword matches always get the fixed message.
    """
    if isinstance(exc, ProviderError):
        if exc.kind == ProviderErrorKind.CONTENT_BLOCKED:
            return ContentBlockedError(exc.message)
        if exc.kind in _KIND_TO_EXCEPTION:
            return _KIND_TO_EXCEPTION[exc.kind]()

    if isinstance(exc, asyncio.TimeoutError):
        return ProviderTimeoutError()

    text = str(exc)
    lowered = text.lower()

    if any(keyword in lowered for keyword in UNAVAILABLE_KEYWORDS):
        return ProviderUnavailableError()
    if any(keyword in lowered for keyword in CONFIGURATION_KEYWORDS):
        return UnexpectedError()
    if any(keyword in lowered for keyword in BLOCKED_KEYWORDS):
        return ContentBlockedError()
    return UnexpectedError()


@dataclass
class OptimizationOutcome:
    """Result of one optimize request, ready to be rendered as HTTP."""
    status_code: int
    optimized_prompt: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.error is None

    def to_body(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "optimizedPrompt": self.optimized_prompt}
        return {"success": False, "error": self.error, "message": self.message}

    @classmethod
    def from_exception(
        cls,
        exc: GatewayException,
        headers: Optional[Dict[str, str]] = None,
    ) -> "OptimizationOutcome":
        return cls(
            status_code=exc.status_code,
            error=exc.error,
            message=exc.message,
            headers=headers or {},
        )


class OptimizationGateway:
    """Orchestrates rate limiting, validation and the provider call.

    The rate limiter and provider are injected so each application (or
    test) owns independent instances.
    """

    def __init__(
        self,
        rate_limiter: RateLimitBackend,
        provider: BaseProvider,
        provider_timeout: Optional[float] = 30.0,
    ):
        """Initialize the gateway.

        Args:
            rate_limiter: Per-client admission control
            provider: Model provider performing the optimization
            provider_timeout: Seconds to wait for the provider (None = no limit)
        """
        self.rate_limiter = rate_limiter
        self.provider = provider
        self.provider_timeout = provider_timeout

    async def handle(
        self,
        raw_body: bytes,
        client_id: str,
        request_id: Optional[str] = None,
    ) -> OptimizationOutcome:
        """Process one optimize request.

        Args:
            raw_body: Request body as received
            client_id: Rate limit identifier for the caller
            request_id: Request ID for log correlation

        Returns:
            OptimizationOutcome; this method does not raise
        """
        log_context = get_log_context(
            request_id=request_id, client_id=client_id, provider=self.provider.name
        )

        decision = await self.rate_limiter.check_limit(client_id)
        if not decision.allowed:
            exc = self._rate_limited(decision)
            logger.info(
                "Rate limit exceeded",
                extra={**log_context, "retry_after": exc.retry_after},
            )
            return OptimizationOutcome.from_exception(exc, self._rate_limited_headers(exc))

        try:
            prompt = self._extract_prompt(raw_body)
            optimized = await self._call_provider(prompt, log_context)
        except GatewayException as exc:
            return OptimizationOutcome.from_exception(exc)

        return OptimizationOutcome(
            status_code=200,
            optimized_prompt=optimized,
            headers=self._rate_limit_headers(decision),
        )

    def _rate_limited(self, decision: RateLimitResult) -> RateLimitedError:
        return RateLimitedError(
            limit=decision.limit,
            reset_time=decision.reset_time,
            retry_after=decision.retry_after or 0,
        )

    def _extract_prompt(self, raw_body: bytes) -> str:
        """Parse the body and return the validated, trimmed prompt."""
        try:
            body = json.loads(raw_body)
        except (ValueError, TypeError):
            raise MalformedRequestError()

        if not isinstance(body, dict):
            raise MalformedRequestError()

        prompt = body.get("prompt")
        result = validate_prompt(prompt)
        if not result.is_valid:
            raise ValidationFailedError(result.error)
        return prompt.strip()

    async def _call_provider(self, prompt: str, log_context: Dict[str, Any]) -> str:
        try:
            if self.provider_timeout is None:
                optimized = await self.provider.optimize(prompt)
            else:
                optimized = await asyncio.wait_for(
                    self.provider.optimize(prompt), timeout=self.provider_timeout
                )
            if not optimized or not optimized.strip():
                raise ProviderError(
                    ProviderErrorKind.EMPTY_RESPONSE, "empty response from provider"
                )
        except Exception as e:
            failure = classify_provider_error(e)
            logger.error(
                f"Provider call failed: {e!r}",
                extra={
                    **log_context,
                    "exception_type": type(e).__name__,
                    "classified_as": failure.error,
                },
            )
            raise failure from e

        return optimized.strip()

    @staticmethod
    def _rate_limit_headers(decision: RateLimitResult) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": str(decision.remaining),
            "X-RateLimit-Reset": format_reset_time(decision.reset_time),
        }

    @staticmethod
    def _rate_limited_headers(exc: RateLimitedError) -> Dict[str, str]:
        return {
            "Retry-After": str(exc.retry_after),
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": format_reset_time(exc.reset_time),
        }

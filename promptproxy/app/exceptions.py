"""Custom exceptions for the prompt proxy."""

from enum import Enum
from typing import Optional


class GatewayException(Exception):
    """Base class for client-facing failures.

    Each subclass defines the HTTP status code and a stable error code.
    ``message`` is always safe to return to the caller.
    """
    status_code: int = 500
    error: str = "internal_error"
    default_message: str = "An unexpected error occurred. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MalformedRequestError(GatewayException):
    """Raised when the request body cannot be parsed.

    Maps to HTTP 400 Bad Request.
    """
    status_code = 400
    error = "malformed_request"
    default_message = "Request body must be valid JSON"


class ValidationFailedError(GatewayException):
    """Raised when the prompt fails validation.

    The validator's messages are pre-vetted and returned verbatim.
    Maps to HTTP 400 Bad Request.
    """
    status_code = 400
    error = "validation_failed"
    default_message = "Invalid prompt"


class RateLimitedError(GatewayException):
    """Raised when a client has exhausted its request window.

    Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429
    error = "rate_limit_exceeded"
    default_message = "Too many requests. Please try again later."

    def __init__(
        self,
        limit: int,
        reset_time: float,
        retry_after: int,
        message: Optional[str] = None,
    ):
        self.limit = limit
        self.reset_time = reset_time
        self.retry_after = retry_after
        super().__init__(message)


class ProviderUnavailableError(GatewayException):
    """Raised when the model provider is out of quota or unavailable.

    Maps to HTTP 503 Service Unavailable.
    """
    status_code = 503
    error = "provider_unavailable"
    default_message = "Service temporarily unavailable. Please try again later."


class ContentBlockedError(GatewayException):
    """Raised when the provider's safety filter rejects the prompt.

    The message describes the user's own input and is safe to expose.
    Maps to HTTP 400 Bad Request.
    """
    status_code = 400
    error = "content_blocked"
    default_message = "Content was blocked by safety filters. Please modify your prompt."


class ProviderTimeoutError(GatewayException):
    """Raised when the provider does not answer within the configured timeout.

    Maps to HTTP 504 Gateway Timeout.
    """
    status_code = 504
    error = "provider_timeout"
    default_message = "The optimization service took too long to respond. Please try again."


class UnexpectedError(GatewayException):
    """Anything unclassified. Maps to HTTP 500."""


class ProviderErrorKind(str, Enum):
    """Structured failure categories reported by providers."""
    QUOTA = "quota"
    AUTH = "auth"
    CONTENT_BLOCKED = "content_blocked"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    EMPTY_RESPONSE = "empty_response"
    UNKNOWN = "unknown"


class ProviderError(Exception):
    """Raised by providers when an optimize call fails.

    Attributes:
        kind: Structured failure category
        message: Provider-side description (logged, not returned, except
            for CONTENT_BLOCKED)
        status_code: Upstream HTTP status, if any
    """

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str,
        status_code: Optional[int] = None,
    ):
        self.kind = kind
        self.message = message
        self.status_code = status_code
        super().__init__(message)

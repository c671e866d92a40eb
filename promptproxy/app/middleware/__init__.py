"""Middleware package for the prompt proxy."""

from promptproxy.app.middleware.cors import get_cors_headers
from promptproxy.app.middleware.request_id import RequestIdMiddleware, get_request_id
from promptproxy.app.middleware.request_size import RequestSizeLimitMiddleware

__all__ = [
    "get_cors_headers",
    "RequestIdMiddleware",
    "get_request_id",
    "RequestSizeLimitMiddleware",
]

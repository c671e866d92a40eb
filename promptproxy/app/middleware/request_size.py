"""Request body size limit middleware.

Caps the size of incoming request bodies before they are buffered and
parsed. Enforced for both Content-Length and chunked transfer encoding.
"""

import json
from typing import Optional, Sequence

from starlette.datastructures import Headers
from starlette.types import Message, Receive, Scope, Send

from promptproxy.app.middleware.cors import get_cors_headers


class SizeExceededError(Exception):
    """Raised when request body exceeds size limit."""


class SizeLimitedStream:
    """Wraps an ASGI receive callable and counts body bytes as they arrive."""

    def __init__(self, receive: Receive, max_size: int):
        self._receive = receive
        self._max_size = max_size
        self._bytes_read = 0

    async def receive(self) -> Message:
        message = await self._receive()

        if message["type"] == "http.request":
            self._bytes_read += len(message.get("body", b""))
            if self._bytes_read > self._max_size:
                raise SizeExceededError(
                    f"Request body too large. Maximum allowed: {self._max_size} bytes"
                )

        return message


class RequestSizeLimitMiddleware:
    """ASGI middleware returning HTTP 413 for oversized request bodies.

    Uses raw ASGI so the receive callable is wrapped before Starlette's
    Request is constructed.

    When ``allowed_origins`` is given, the 413 carries the same CORS
    headers as the endpoint's own responses.

    Usage:
        app.add_middleware(
            RequestSizeLimitMiddleware,
            max_body_size=64 * 1024,
            allowed_origins=settings.allowed_origins,
        )
    """

    def __init__(
        self,
        app,
        max_body_size: int = 64 * 1024,
        allowed_origins: Optional[Sequence[str]] = None,
    ):
        self.app = app
        self.max_body_size = max_body_size
        self.allowed_origins = list(allowed_origins or [])

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # Fast path: reject on declared Content-Length without reading the body
        for name, value in scope.get("headers", []):
            if name.lower() == b"content-length":
                try:
                    if int(value.decode()) > self.max_body_size:
                        await self._send_413_response(scope, send)
                        return
                except ValueError:
                    pass
                break

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        stream = SizeLimitedStream(receive, self.max_body_size)
        try:
            await self.app(scope, stream.receive, send_wrapper)
        except SizeExceededError:
            if response_started:
                raise
            await self._send_413_response(scope, send)

    async def _send_413_response(self, scope: Scope, send: Send) -> None:
        body = json.dumps({
            "success": False,
            "error": "payload_too_large",
            "message": f"Request body too large. Maximum allowed: {self.max_body_size} bytes",
        }).encode()

        headers = [
            (b"content-type", b"application/json"),
            (b"content-length", str(len(body)).encode()),
        ]
        if self.allowed_origins:
            origin = Headers(scope=scope).get("origin")
            for name, value in get_cors_headers(origin, self.allowed_origins).items():
                headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

        await send(
            {
                "type": "http.response.start",
                "status": 413,
                "headers": headers,
            }
        )
        await send({"type": "http.response.body", "body": body})

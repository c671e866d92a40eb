"""Mock provider for development and tests.

Simulates an optimization without calling any external API.

Enable by setting environment variable:
    PROVIDER=mock
"""

import asyncio
from typing import Any, Optional

from promptproxy.app.providers.base import BaseProvider


class MockProvider(BaseProvider):
    """Mock provider that returns a deterministic "optimized" prompt.

    Features:
    - Configurable response delay
    - Fixed response text, or a template wrapping the input
    - Configurable exception to exercise error handling
    """

    name = "mock"

    def __init__(
        self,
        response: Optional[str] = None,
        delay: float = 0.0,
        error: Optional[BaseException] = None,
        healthy: bool = True,
        http_client: Optional[Any] = None,
    ):
        """Initialize the mock provider.

        Args:
            response: Fixed text to return; defaults to a template around the input
            delay: Seconds to sleep before answering
            error: Exception raised on every optimize call
            healthy: Value reported by health_check
            http_client: Not used, provided for API compatibility
        """
        super().__init__("http://mock.provider", "mock-key", http_client)
        self.response = response
        self.delay = delay
        self.error = error
        self.healthy = healthy
        self.calls: list[str] = []

    def _generate_content(self, prompt: str) -> str:
        return (
            "You are an expert assistant. Complete the following task with a clear, "
            "well-structured answer and state any assumptions you make.\n\n"
            f"Task: {prompt}\n\n"
            "Format: a short summary followed by step-by-step details."
        )

    async def optimize(self, prompt: str) -> str:
        self.calls.append(prompt)

        if self.delay:
            await asyncio.sleep(self.delay)

        if self.error is not None:
            raise self.error

        if self.response is not None:
            return self.response
        return self._generate_content(prompt)

    async def health_check(self, timeout: float = 2.0) -> bool:
        return self.healthy

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

import httpx

# System instruction shared by every provider
SYSTEM_INSTRUCTION = """You are an expert AI prompt engineer. Your task is to optimize user prompts to make them more effective, clear, and likely to produce high-quality results from AI models.

When optimizing prompts, you should:
1. Make the prompt more specific and detailed
2. Add relevant context and constraints
3. Structure the prompt logically
4. Include desired output format when applicable
5. Remove ambiguity and vagueness
6. Add examples if helpful
7. Ensure the prompt is clear and actionable

Return ONLY the optimized prompt without any explanations, meta-commentary, or additional text. Do not include phrases like "Here's the optimized prompt:" or "Optimized version:". Just return the improved prompt directly."""


class BaseProvider(ABC):
    """Base class for model providers.

    A provider turns a user prompt into an optimized prompt. Failures are
    reported by raising ``ProviderError`` with a structured kind.

    Subclasses can accept an external httpx.AsyncClient for connection
    pooling, or create a short-lived one per call if not provided.
    """

    name: str = "base"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
        system_instruction: str = SYSTEM_INSTRUCTION,
    ):
        """Initialize the provider.

        Args:
            base_url: The API base URL
            api_key: The API key for authentication
            http_client: Optional shared HTTP client for connection pooling
            timeout: Request timeout in seconds
            system_instruction: Instruction describing the optimization task
        """
        self._http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.system_instruction = system_instruction

    def _build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    @asynccontextmanager
    async def _client_context(self) -> AsyncGenerator[httpx.AsyncClient, None]:
        """Yield the shared client, or a per-call client that is closed afterwards."""
        if self._http_client is not None:
            yield self._http_client
            return

        client = httpx.AsyncClient(timeout=self.timeout)
        try:
            yield client
        finally:
            await client.aclose()

    def _get_endpoint_url(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    @abstractmethod
    async def optimize(self, prompt: str) -> str:
        """Return an optimized version of the prompt.

        Args:
            prompt: Validated, trimmed user prompt

        Returns:
            The optimized prompt text

        Raises:
            ProviderError: If the provider rejects or fails the request
        """

    @abstractmethod
    async def health_check(self, timeout: float = 2.0) -> bool:
        """Check if the provider is reachable and the credential works.

        Args:
            timeout: Request timeout in seconds (default: 2.0)

        Returns:
            True if the provider is healthy, False otherwise
        """

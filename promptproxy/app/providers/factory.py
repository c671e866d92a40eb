"""Provider construction from settings."""

from enum import Enum
from typing import Optional

import httpx

from promptproxy.app.core.config import Settings
from promptproxy.app.core.logging import get_logger
from promptproxy.app.providers.base import BaseProvider
from promptproxy.app.providers.gemini import GeminiProvider
from promptproxy.app.providers.mock import MockProvider
from promptproxy.app.providers.openai import OpenAIProvider

logger = get_logger(__name__)


class ProviderType(str, Enum):
    """Supported provider types."""
    GEMINI = "gemini"
    OPENAI = "openai"
    MOCK = "mock"


def create_provider(
    config: Settings,
    http_client: Optional[httpx.AsyncClient] = None,
) -> BaseProvider:
    """Create the provider selected by ``config.provider``.

    Args:
        config: Application settings
        http_client: Shared HTTP client for connection pooling

    Returns:
        Configured provider instance

    Raises:
        ValueError: If the provider type is unknown
    """
    provider_type = ProviderType(config.provider)

    if provider_type == ProviderType.GEMINI:
        provider: BaseProvider = GeminiProvider(
            api_key=config.gemini_api_key,
            base_url=config.gemini_base_url,
            model=config.gemini_model,
            http_client=http_client,
            timeout=config.provider_timeout_seconds,
        )
    elif provider_type == ProviderType.OPENAI:
        provider = OpenAIProvider(
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            model=config.openai_model,
            http_client=http_client,
            timeout=config.provider_timeout_seconds,
        )
    else:
        provider = MockProvider()

    logger.info(f"Created {provider_type.value} provider", extra={"provider": provider.name})
    return provider

"""Model providers for the prompt proxy.

This package provides:
- Base provider interface (BaseProvider)
- Provider implementations (GeminiProvider, OpenAIProvider, MockProvider)
- Provider factory (ProviderType, create_provider)
"""

from promptproxy.app.providers.base import SYSTEM_INSTRUCTION, BaseProvider
from promptproxy.app.providers.factory import ProviderType, create_provider
from promptproxy.app.providers.gemini import GeminiProvider
from promptproxy.app.providers.mock import MockProvider
from promptproxy.app.providers.openai import OpenAIProvider

__all__ = [
    "SYSTEM_INSTRUCTION",
    "BaseProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "MockProvider",
    "ProviderType",
    "create_provider",
]

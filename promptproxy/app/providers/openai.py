from typing import Optional

import httpx
import openai
from openai import AsyncOpenAI

from promptproxy.app.core.logging import get_logger
from promptproxy.app.exceptions import ProviderError, ProviderErrorKind
from promptproxy.app.providers.base import SYSTEM_INSTRUCTION, BaseProvider

logger = get_logger(__name__)

BLOCKED_MESSAGE = "Content was blocked by safety filters. Please modify your prompt."


class OpenAIProvider(BaseProvider):
    """OpenAI-compatible chat completions provider.

    Works with any endpoint speaking the OpenAI chat API (OpenAI,
    OpenRouter, DeepSeek). SDK exceptions are mapped to ProviderError kinds.
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
        system_instruction: str = SYSTEM_INSTRUCTION,
    ):
        super().__init__(base_url, api_key, http_client, timeout, system_instruction)
        self.model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    async def optimize(self, prompt: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.system_instruction},
                    {"role": "user", "content": prompt},
                ],
                stream=False,
            )
        except openai.APITimeoutError as e:
            raise ProviderError(ProviderErrorKind.TIMEOUT, f"OpenAI request timed out: {e}") from e
        except openai.APIConnectionError as e:
            raise ProviderError(ProviderErrorKind.UNAVAILABLE, f"OpenAI connection error: {e}") from e
        except openai.RateLimitError as e:
            raise ProviderError(ProviderErrorKind.QUOTA, f"OpenAI API error: {e}", e.status_code) from e
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise ProviderError(ProviderErrorKind.AUTH, f"OpenAI API error: {e}", e.status_code) from e
        except openai.BadRequestError as e:
            if getattr(e, "code", None) == "content_filter":
                raise ProviderError(ProviderErrorKind.CONTENT_BLOCKED, BLOCKED_MESSAGE, e.status_code) from e
            raise ProviderError(ProviderErrorKind.UNKNOWN, f"OpenAI API error: {e}", e.status_code) from e
        except openai.InternalServerError as e:
            raise ProviderError(ProviderErrorKind.UNAVAILABLE, f"OpenAI API error: {e}", e.status_code) from e

        if not response.choices:
            raise ProviderError(ProviderErrorKind.EMPTY_RESPONSE, "OpenAI API returned no choices")

        choice = response.choices[0]
        if choice.finish_reason == "content_filter":
            raise ProviderError(ProviderErrorKind.CONTENT_BLOCKED, BLOCKED_MESSAGE)

        text = (choice.message.content or "").strip()
        if not text:
            raise ProviderError(ProviderErrorKind.EMPTY_RESPONSE, "OpenAI API returned empty response")

        if response.usage:
            logger.debug(
                f"Optimize completed: model={response.model}, "
                f"tokens={response.usage.total_tokens}"
            )
        return text

    async def health_check(self, timeout: float = 2.0) -> bool:
        try:
            await self._client.with_options(timeout=timeout).models.retrieve(self.model)
            return True
        except Exception:
            return False

from typing import Any, Dict, List, Optional

import httpx

from promptproxy.app.exceptions import ProviderError, ProviderErrorKind
from promptproxy.app.providers.base import SYSTEM_INSTRUCTION, BaseProvider

# Block medium-and-above probability for every harm category
SAFETY_SETTINGS: List[Dict[str, str]] = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]

# Candidate finish reasons that mean the output was withheld
BLOCKED_FINISH_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"}

BLOCKED_MESSAGE = "Content was blocked by safety filters. Please modify your prompt."


class GeminiProvider(BaseProvider):
    """Google Gemini provider using the generateContent REST endpoint.

    Upstream failures are translated into ``ProviderError`` kinds from the
    HTTP status and the error payload's ``status`` field, so callers never
    need to parse provider wording.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        model: str = "gemini-2.5-flash",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
        system_instruction: str = SYSTEM_INSTRUCTION,
    ):
        super().__init__(base_url, api_key, http_client, timeout, system_instruction)
        self.model = model

    def _build_headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": self.system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "safetySettings": SAFETY_SETTINGS,
        }

    async def optimize(self, prompt: str) -> str:
        url = self._get_endpoint_url(f"/models/{self.model}:generateContent")

        try:
            async with self._client_context() as client:
                resp = await client.post(
                    url,
                    headers=self._build_headers(),
                    json=self._build_payload(prompt),
                    timeout=self.timeout,
                )
        except httpx.TimeoutException as e:
            raise ProviderError(ProviderErrorKind.TIMEOUT, f"Gemini request timed out: {e}") from e
        except httpx.TransportError as e:
            raise ProviderError(ProviderErrorKind.UNAVAILABLE, f"Gemini transport error: {e}") from e

        if resp.status_code != 200:
            raise self._error_from_response(resp)

        return self._extract_text(resp.json())

    def _error_from_response(self, resp: httpx.Response) -> ProviderError:
        """Map an error response onto a ProviderError kind."""
        try:
            payload = resp.json()
        except ValueError:
            payload = {}
        error = payload.get("error") if isinstance(payload, dict) else None
        error = error if isinstance(error, dict) else {}
        message = error.get("message") or resp.text or f"HTTP {resp.status_code}"
        status = error.get("status", "")

        if resp.status_code == 429 or status == "RESOURCE_EXHAUSTED":
            kind = ProviderErrorKind.QUOTA
        elif resp.status_code in (401, 403) or "API key" in message:
            kind = ProviderErrorKind.AUTH
        elif resp.status_code >= 500:
            kind = ProviderErrorKind.UNAVAILABLE
        else:
            kind = ProviderErrorKind.UNKNOWN

        return ProviderError(kind, f"Gemini API error: {message}", status_code=resp.status_code)

    def _extract_text(self, data: Dict[str, Any]) -> str:
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise ProviderError(ProviderErrorKind.CONTENT_BLOCKED, BLOCKED_MESSAGE)

        candidates = data.get("candidates") or []
        if not candidates:
            raise ProviderError(ProviderErrorKind.EMPTY_RESPONSE, "Gemini API returned no candidates")

        candidate = candidates[0]
        if candidate.get("finishReason") in BLOCKED_FINISH_REASONS:
            raise ProviderError(ProviderErrorKind.CONTENT_BLOCKED, BLOCKED_MESSAGE)

        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts).strip()
        if not text:
            raise ProviderError(ProviderErrorKind.EMPTY_RESPONSE, "Gemini API returned empty response")
        return text

    async def health_check(self, timeout: float = 2.0) -> bool:
        """Fetch the configured model's metadata with a short timeout."""
        try:
            url = self._get_endpoint_url(f"/models/{self.model}")
            async with self._client_context() as client:
                resp = await client.get(url, headers=self._build_headers(), timeout=timeout)
                return resp.status_code == 200
        except Exception:
            return False

"""Gemini generateContent REST client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from meal_analyzer.domain.errors import ProviderError

_PROVIDER = "gemini"
_ERROR_BODY_LIMIT = 500
_SAFETY_SETTINGS = [
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_ONLY_HIGH"},
]


class GeminiClient(Protocol):
    """Interface for Gemini content generation."""

    async def generate_content(
        self,
        *,
        system_instruction: str,
        parts: list[dict[str, object]],
        temperature: float,
        max_output_tokens: int,
        timeout: float,
    ) -> str:
        """Return the concatenated text of the first candidate."""


@dataclass
class HttpxGeminiClient(GeminiClient):
    """HTTPX-backed Gemini client."""

    api_key: str
    model: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, model: str, base_url: str) -> "HttpxGeminiClient":
        """Create a Gemini client with a managed httpx session."""
        return cls(
            api_key=api_key,
            model=model,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
        )

    async def generate_content(
        self,
        *,
        system_instruction: str,
        parts: list[dict[str, object]],
        temperature: float,
        max_output_tokens: int,
        timeout: float,
    ) -> str:
        """Call generateContent and return the reply text."""
        url = f"{self.base_url}/models/{self.model}:generateContent"
        body = {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_output_tokens,
            },
            "safetySettings": _SAFETY_SETTINGS,
        }
        try:
            response = await self.http_client.post(
                url,
                headers={"x-goog-api-key": self.api_key},
                json=body,
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise ProviderError(
                _PROVIDER, f"Gemini request timed out after {timeout}s", timed_out=True
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(_PROVIDER, f"Gemini request failed: {exc}") from exc

        if not response.is_success:
            raise ProviderError(
                _PROVIDER,
                f"Gemini API error: {response.status_code} - "
                f"{response.text[:_ERROR_BODY_LIMIT]}",
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(_PROVIDER, "Gemini returned a non-JSON body") from exc
        return _extract_text(payload)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _extract_text(payload: object) -> str:
    """Join the text parts of the first candidate; Gemini may split replies."""
    candidates = payload.get("candidates") if isinstance(payload, dict) else None
    if not isinstance(candidates, list) or not candidates or not isinstance(
        candidates[0], dict
    ):
        raise ProviderError(_PROVIDER, "No candidate in Gemini response")
    content = candidates[0].get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts:
        reason = candidates[0].get("finishReason", "unknown")
        raise ProviderError(
            _PROVIDER, f"No parts in Gemini response (finishReason={reason})"
        )
    text = "".join(
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    )
    if not text:
        raise ProviderError(_PROVIDER, "No text in Gemini response")
    return text

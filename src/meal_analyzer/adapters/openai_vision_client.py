"""OpenAI Chat Completions client for vision estimates."""

from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from meal_analyzer.domain.errors import ProviderError
from meal_analyzer.services.providers import VisionChatClient

_PROVIDER = "openai"


@dataclass
class OpenAIVisionClient(VisionChatClient):
    """Vision client backed by OpenAI Chat Completions."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIVisionClient":
        """Create an OpenAI vision client; retries are left to the fallback policy."""
        return cls(client=AsyncOpenAI(api_key=api_key, max_retries=0))

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_instruction: str,
        prompt: str,
        image_url: str,
        timeout: float,
    ) -> str:
        """Request a JSON object describing the image and return its text."""
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_instruction},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {
                                "type": "image_url",
                                "image_url": {"url": image_url, "detail": "low"},
                            },
                        ],
                    },
                ],
                response_format={"type": "json_object"},
                temperature=0.4,
                max_completion_tokens=512,
                timeout=timeout,
            )
        except openai.APITimeoutError as exc:
            raise ProviderError(
                _PROVIDER, f"OpenAI request timed out after {timeout}s", timed_out=True
            ) from exc
        except openai.APIStatusError as exc:
            raise ProviderError(
                _PROVIDER, f"OpenAI API error: {exc.status_code} - {exc.message}"
            ) from exc
        except openai.OpenAIError as exc:
            raise ProviderError(_PROVIDER, f"OpenAI request failed: {exc}") from exc

        output_text = response.choices[0].message.content if response.choices else None
        if not output_text:
            raise ProviderError(_PROVIDER, "OpenAI returned an empty response")
        return output_text

    async def close(self) -> None:
        """Close the underlying OpenAI HTTP session."""
        await self.client.close()

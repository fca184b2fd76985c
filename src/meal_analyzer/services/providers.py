"""Inference provider adapters producing canonical macro estimates."""

import base64
from dataclasses import dataclass
from typing import Protocol

from meal_analyzer.adapters.gemini_client import GeminiClient
from meal_analyzer.adapters.image_client import ImageClient
from meal_analyzer.domain.errors import ImageUnreachable, ProviderError
from meal_analyzer.domain.estimates import MacroEstimate, Provider
from meal_analyzer.services.normalizer import normalize
from meal_analyzer.services.prompts import (
    IMAGE_INSTRUCTION,
    TEXT_INSTRUCTION,
    image_prompt,
    text_prompt,
)


class InferenceProvider(Protocol):
    """One inference backend that turns an image URL or text into an estimate."""

    name: Provider

    async def infer(self, subject: str, hint: str | None = None) -> MacroEstimate:
        """Return an estimate or raise ProviderError / MalformedResponse."""


class VisionChatClient(Protocol):
    """Interface for chat-style vision models that accept an image URL."""

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_instruction: str,
        prompt: str,
        image_url: str,
        timeout: float,
    ) -> str:
        """Return the raw reply text."""


@dataclass
class GeminiVisionProvider(InferenceProvider):
    """Primary image provider; sends the image inline to Gemini."""

    client: GeminiClient
    image_client: ImageClient
    timeout_seconds: float = 50.0
    image_fetch_timeout_seconds: float = 30.0
    temperature: float = 0.4
    max_output_tokens: int = 4096
    name: Provider = Provider.GEMINI

    async def infer(self, subject: str, hint: str | None = None) -> MacroEstimate:
        """Estimate macros for the image at ``subject``."""
        try:
            image = await self.image_client.fetch(
                subject, timeout=self.image_fetch_timeout_seconds
            )
        except ImageUnreachable as exc:
            raise ProviderError(
                self.name.value,
                f"{exc.message}: {exc.details}",
                timed_out=exc.timed_out,
            ) from exc

        raw = await self.client.generate_content(
            system_instruction=IMAGE_INSTRUCTION,
            parts=[
                {"text": image_prompt(hint)},
                {
                    "inline_data": {
                        "mime_type": _detect_mime_type(
                            image.content, image.content_type
                        ),
                        "data": base64.b64encode(image.content).decode("utf-8"),
                    }
                },
            ],
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            timeout=self.timeout_seconds,
        )
        return normalize(raw, provider=self.name.value)


@dataclass
class GeminiTextProvider(InferenceProvider):
    """Text-only provider for meal descriptions."""

    client: GeminiClient
    timeout_seconds: float = 40.0
    temperature: float = 0.3
    max_output_tokens: int = 2048
    name: Provider = Provider.GEMINI

    async def infer(self, subject: str, hint: str | None = None) -> MacroEstimate:
        """Estimate macros for the meal described by ``subject``."""
        raw = await self.client.generate_content(
            system_instruction=TEXT_INSTRUCTION,
            parts=[{"text": text_prompt(subject)}],
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            timeout=self.timeout_seconds,
        )
        return normalize(raw, provider=self.name.value)


@dataclass
class OpenAIVisionProvider(InferenceProvider):
    """Secondary image provider; OpenAI fetches the image by URL itself."""

    client: VisionChatClient
    model: str
    timeout_seconds: float = 40.0
    name: Provider = Provider.OPENAI

    async def infer(self, subject: str, hint: str | None = None) -> MacroEstimate:
        """Estimate macros for the image at ``subject``."""
        raw = await self.client.complete(
            model=self.model,
            system_instruction=IMAGE_INSTRUCTION,
            prompt=image_prompt(hint),
            image_url=subject,
            timeout=self.timeout_seconds,
        )
        return normalize(raw, provider=self.name.value)


def _detect_mime_type(image_bytes: bytes, declared: str | None = None) -> str:
    """Infer the image MIME type from file signatures, then the header."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if declared and declared.startswith("image/"):
        return declared
    return "image/jpeg"

"""Tests for HTTP-based adapters."""

import asyncio
import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from meal_analyzer.adapters.gemini_client import HttpxGeminiClient
from meal_analyzer.adapters.image_client import HttpxImageClient
from meal_analyzer.adapters.openai_vision_client import OpenAIVisionClient
from meal_analyzer.domain.errors import ImageUnreachable, ProviderError

GEMINI_URL = "https://gemini.test/v1beta"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"


def _gemini_client(handler) -> HttpxGeminiClient:  # type: ignore[no-untyped-def]
    return HttpxGeminiClient(
        api_key="gemini-key",
        model="gemini-2.5-flash",
        base_url=GEMINI_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _generate(client: HttpxGeminiClient) -> str:
    return asyncio.run(
        client.generate_content(
            system_instruction="You are a nutritionist.",
            parts=[{"text": "Analyze this meal"}],
            temperature=0.3,
            max_output_tokens=2048,
            timeout=5.0,
        )
    )


def test_gemini_client_posts_request_and_joins_parts() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "candidates": [
                    {"content": {"parts": [{"text": '{"calories": '}, {"text": "1}"}]}}
                ]
            },
        )

    text = _generate(_gemini_client(handler))

    assert text == '{"calories": 1}'
    request = seen[0]
    assert request.url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
    assert request.headers["x-goog-api-key"] == "gemini-key"
    payload = json.loads(request.content.decode())
    assert payload["systemInstruction"] == {
        "parts": [{"text": "You are a nutritionist."}]
    }
    assert payload["contents"] == [
        {"role": "user", "parts": [{"text": "Analyze this meal"}]}
    ]
    assert payload["generationConfig"] == {"temperature": 0.3, "maxOutputTokens": 2048}


def test_gemini_client_reports_http_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="model overloaded")

    with pytest.raises(ProviderError) as exc_info:
        _generate(_gemini_client(handler))

    assert exc_info.value.provider == "gemini"
    assert exc_info.value.details == "Gemini API error: 503 - model overloaded"
    assert exc_info.value.timed_out is False


def test_gemini_client_reports_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ProviderError) as exc_info:
        _generate(_gemini_client(handler))

    assert exc_info.value.timed_out is True


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"candidates": []}, "No candidate"),
        ({"candidates": {"first": {}}}, "No candidate"),
        ({"candidates": ["text"]}, "No candidate"),
        ({"candidates": [{"content": {"parts": 5}}]}, "No parts"),
        ({"candidates": [{"finishReason": "SAFETY"}]}, "finishReason=SAFETY"),
        ({"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]}, "No text"),
    ],
)
def test_gemini_client_rejects_empty_reply(payload: dict, message: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    with pytest.raises(ProviderError) as exc_info:
        _generate(_gemini_client(handler))

    assert message in exc_info.value.details


def test_gemini_client_rejects_non_json_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    with pytest.raises(ProviderError) as exc_info:
        _generate(_gemini_client(handler))

    assert exc_info.value.details == "Gemini returned a non-JSON body"


def test_image_client_probe_reports_status_and_type() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "HEAD"
        return httpx.Response(200, headers={"content-type": "Image/PNG; charset=x"})

    client = HttpxImageClient(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )

    probe = asyncio.run(client.probe("https://cdn.example.com/a.png", timeout=5.0))

    assert probe.status_code == 200
    assert probe.content_type == "image/png"
    assert probe.is_image is True


def test_image_client_fetch_returns_bytes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        return httpx.Response(
            200, content=b"\xff\xd8\xffdata", headers={"content-type": "image/jpeg"}
        )

    client = HttpxImageClient(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )

    image = asyncio.run(client.fetch("https://cdn.example.com/a.jpg", timeout=5.0))

    assert image.content == b"\xff\xd8\xffdata"
    assert image.content_type == "image/jpeg"


def test_image_client_fetch_rejects_error_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403)

    client = HttpxImageClient(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )

    with pytest.raises(ImageUnreachable) as exc_info:
        asyncio.run(client.fetch("https://cdn.example.com/a.jpg", timeout=5.0))

    assert exc_info.value.details == "status 403"
    assert exc_info.value.timed_out is False


def test_image_client_probe_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    client = HttpxImageClient(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )

    with pytest.raises(ImageUnreachable) as exc_info:
        asyncio.run(client.probe("https://cdn.example.com/a.jpg", timeout=5.0))

    assert exc_info.value.timed_out is True
    assert exc_info.value.message == "Failed to access image URL"


class _FakeCompletions:
    def __init__(self, content: str | None = None, error: Exception | None = None):
        self.content = content
        self.error = error
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class _FakeOpenAI:
    def __init__(self, completions: _FakeCompletions) -> None:
        self.chat = SimpleNamespace(completions=completions)


def _complete(client: OpenAIVisionClient) -> str:
    return asyncio.run(
        client.complete(
            model="gpt-4o-mini",
            system_instruction="You are a nutritionist.",
            prompt="Analyze this meal image",
            image_url="https://cdn.example.com/a.jpg",
            timeout=40.0,
        )
    )


def test_openai_vision_client_requests_json_object() -> None:
    completions = _FakeCompletions(content='{"calories": 1}')
    client = OpenAIVisionClient(client=_FakeOpenAI(completions))

    assert _complete(client) == '{"calories": 1}'

    payload = completions.last_payload
    assert payload is not None
    assert payload["model"] == "gpt-4o-mini"
    assert payload["response_format"] == {"type": "json_object"}
    assert payload["max_completion_tokens"] == 512
    assert payload["timeout"] == 40.0
    user_content = payload["messages"][1]["content"]
    assert user_content[1] == {
        "type": "image_url",
        "image_url": {"url": "https://cdn.example.com/a.jpg", "detail": "low"},
    }


def test_openai_vision_client_rejects_empty_reply() -> None:
    client = OpenAIVisionClient(client=_FakeOpenAI(_FakeCompletions(content="")))

    with pytest.raises(ProviderError) as exc_info:
        _complete(client)

    assert exc_info.value.details == "OpenAI returned an empty response"


def test_openai_vision_client_maps_status_error() -> None:
    request = httpx.Request("POST", OPENAI_URL)
    error = openai.APIStatusError(
        "rate limited", response=httpx.Response(429, request=request), body=None
    )
    client = OpenAIVisionClient(client=_FakeOpenAI(_FakeCompletions(error=error)))

    with pytest.raises(ProviderError) as exc_info:
        _complete(client)

    assert exc_info.value.provider == "openai"
    assert exc_info.value.details == "OpenAI API error: 429 - rate limited"


def test_openai_vision_client_maps_timeout() -> None:
    error = openai.APITimeoutError(request=httpx.Request("POST", OPENAI_URL))
    client = OpenAIVisionClient(client=_FakeOpenAI(_FakeCompletions(error=error)))

    with pytest.raises(ProviderError) as exc_info:
        _complete(client)

    assert exc_info.value.timed_out is True

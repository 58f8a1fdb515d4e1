"""Tests for the prompt-cleaning client and its fallback."""

from __future__ import annotations

import json

import httpx
import pytest

from shotgen.core.api.text.sanitizer import PromptSanitizerClient, clean_or_fallback
from shotgen.core.config.models import TextServiceConfig
from shotgen.core.errors import InvalidRequestError, ProviderUnavailableError
from tests.conftest import FakeSanitizer

CONFIG = TextServiceConfig(base_url="https://text.example", api_key="tok")


def _client(handler) -> PromptSanitizerClient:
    return PromptSanitizerClient(CONFIG, transport=httpx.MockTransport(handler))


async def test_clean_posts_script_and_returns_cleaned_prompt() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(
            200,
            json={"cleanedPrompt": "  A knight walks into a tavern  "},
            headers={"content-type": "application/json"},
        )

    async with _client(handler) as client:
        cleaned = await client.clean("INT. TAVERN - NIGHT\nKNIGHT: (enters)")

    assert cleaned == "A knight walks into a tavern"
    assert captured[0].url.path == "/api/clean-prompt"
    assert captured[0].headers["authorization"] == "Bearer tok"
    assert json.loads(captured[0].content) == {"script": "INT. TAVERN - NIGHT\nKNIGHT: (enters)"}


async def test_clean_500_is_provider_unavailable() -> None:
    async with _client(lambda r: httpx.Response(500, text="boom")) as client:
        with pytest.raises(ProviderUnavailableError):
            await client.clean("hello")


async def test_clean_400_is_invalid_request() -> None:
    async with _client(lambda r: httpx.Response(400, text="bad")) as client:
        with pytest.raises(InvalidRequestError):
            await client.clean("hello")


async def test_clean_rejects_blank_script() -> None:
    async with _client(lambda r: httpx.Response(200)) as client:
        with pytest.raises(InvalidRequestError):
            await client.clean("   ")


async def test_fallback_on_http_500_uses_trimmed_original() -> None:
    async with _client(lambda r: httpx.Response(500, text="boom")) as client:
        result = await clean_or_fallback(client, "  A castle at sunset \n")
    assert result == "A castle at sunset"


async def test_fallback_on_empty_cleaned_prompt() -> None:
    result = await clean_or_fallback(FakeSanitizer(result="   "), " original ")
    assert result == "original"


async def test_fallback_without_sanitizer() -> None:
    assert await clean_or_fallback(None, "  raw  ") == "raw"


async def test_cleaned_text_is_used() -> None:
    sanitizer = FakeSanitizer()
    assert await clean_or_fallback(sanitizer, " castle ") == "CASTLE"
    assert sanitizer.calls == ["castle"]


def test_client_requires_base_url() -> None:
    with pytest.raises(ValueError):
        PromptSanitizerClient(TextServiceConfig())

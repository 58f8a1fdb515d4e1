"""Prompt-cleaning client.

The remote service turns raw script text (scene headers, speaker labels,
stage directions, non-English prose) into an English image prompt. It is
an optional nicety: whenever it fails, generation continues with the
trimmed original text.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import httpx

from shotgen.core.api.http import ApiError, ApiKeyAuth, AsyncApiClient, HttpClientConfig
from shotgen.core.api.text.models import CleanPromptRequest, CleanPromptResponse
from shotgen.core.config.models import TextServiceConfig
from shotgen.core.errors import InvalidRequestError, ProviderUnavailableError

logger = logging.getLogger(__name__)


@runtime_checkable
class PromptSanitizer(Protocol):
    """Text-to-text service producing an image prompt from script text."""

    async def clean(self, script: str) -> str:
        ...


def build_text_client(
    config: TextServiceConfig, transport: httpx.AsyncBaseTransport | None = None
) -> AsyncApiClient:
    """Build the HTTP client shared by the text service clients."""
    if config.base_url is None:
        raise ValueError("Text service base_url is not configured")
    auth = None
    if config.api_key:
        auth = ApiKeyAuth(
            header_name=config.auth_header, api_key=config.api_key, prefix=config.auth_prefix
        )
    return AsyncApiClient(
        HttpClientConfig(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.request_timeout_s, connect=5.0),
        ),
        auth=auth,
        transport=transport,
    )


class PromptSanitizerClient:
    """HTTP client for the prompt-cleaning endpoint (``{script}`` -> ``{cleanedPrompt}``)."""

    def __init__(
        self, config: TextServiceConfig, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self.config = config
        self._api = build_text_client(config, transport)

    async def aclose(self) -> None:
        await self._api.aclose()

    async def __aenter__(self) -> PromptSanitizerClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def clean(self, script: str) -> str:
        """Return the cleaned prompt.

        Raises:
            InvalidRequestError: Empty script or 4xx from the service
            ProviderUnavailableError: Network failure or 5xx
        """
        if not script or not script.strip():
            raise InvalidRequestError("Script text is required")
        try:
            resp = await self._api.post(
                self.config.clean_path,
                json_body=CleanPromptRequest(script=script).model_dump(),
            )
            body = self._api.parse_pydantic(resp, CleanPromptResponse)
        except ApiError as e:
            if e.is_transient:
                raise ProviderUnavailableError(f"Failed to clean prompt: {e}", cause=e) from e
            raise InvalidRequestError(f"Failed to clean prompt: {e}", cause=e) from e
        return body.cleaned_prompt.strip()


async def clean_or_fallback(sanitizer: PromptSanitizer | None, text: str) -> str:
    """Clean ``text`` when a sanitizer is available, never failing.

    Any sanitizer error, or an empty cleaned result, falls back to the
    trimmed original text.
    """
    original = text.strip()
    if sanitizer is None or not original:
        return original
    try:
        cleaned = (await sanitizer.clean(original)).strip()
    except Exception as e:
        logger.warning(f"Prompt cleaning failed, using original text: {e}")
        return original
    if not cleaned:
        logger.warning("Prompt cleaning returned empty text, using original text")
        return original
    return cleaned

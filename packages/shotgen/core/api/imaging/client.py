"""HTTP client for the text-to-image provider.

Queue-based protocol: submit -> poll the returned polling URL -> download
the signed sample URL. The client is stateless between calls; sequencing
and the polling cadence belong to GenerationTask.
"""

from __future__ import annotations

import json
import logging

import httpx

from shotgen.core.api.http import (
    ApiError,
    ApiKeyAuth,
    AsyncApiClient,
    HttpClientConfig,
    RetryPolicy,
)
from shotgen.core.api.imaging.models import (
    AspectRatio,
    AssetPayload,
    JobHandle,
    JobStatus,
    PollResponse,
    SubmitRequest,
    SubmitResponse,
)
from shotgen.core.config.models import ProviderConfig
from shotgen.core.errors import (
    AssetExpiredError,
    InvalidRequestError,
    ProviderUnavailableError,
)

logger = logging.getLogger(__name__)

# Signed URLs answer with one of these once the signature window has passed.
_EXPIRED_ASSET_STATUSES = frozenset({401, 403, 404, 410})


def _provider_message(error: ApiError) -> str:
    """Best-effort extraction of the provider's own error message."""
    snippet = error.response_body_snippet
    if snippet:
        try:
            body = json.loads(snippet)
        except ValueError:
            return snippet[:200]
        if isinstance(body, dict):
            nested = body.get("error")
            if isinstance(nested, dict) and nested.get("message"):
                return str(nested["message"])
            for key in ("message", "detail"):
                if body.get(key):
                    return str(body[key])
    return error.message


class ImageProviderClient:
    """Provider client implementing the ImageProvider protocol.

    Args:
        config: Provider connection settings (api_key is required)
        transport: Optional transport for provider API calls (tests)
        asset_transport: Optional transport for signed-URL downloads (tests)
        asset_retry_policy: Retry policy for downloads (default: library default)

    Example:
        >>> async with ImageProviderClient(ProviderConfig(api_key="k")) as provider:
        ...     handle = await provider.submit("A castle at sunset", "16:9")
        ...     status = await provider.poll(handle)
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        asset_transport: httpx.AsyncBaseTransport | None = None,
        asset_retry_policy: RetryPolicy | None = None,
    ) -> None:
        if not config.api_key:
            raise ValueError("Provider api_key is not configured (set BFL_API_KEY)")
        self.config = config
        timeout = httpx.Timeout(config.request_timeout_s, connect=5.0)
        self._api = AsyncApiClient(
            HttpClientConfig(
                base_url=config.base_url,
                timeout=timeout,
                headers={"accept": "application/json"},
            ),
            auth=ApiKeyAuth(header_name=config.auth_header, api_key=config.api_key),
            # One HTTP call per submit/poll; the task's poll loop absorbs blips.
            retry_policy=RetryPolicy.no_retry(),
            transport=transport,
        )
        # Signed URLs carry their own authorization; never send the key there.
        self._assets = AsyncApiClient(
            HttpClientConfig(base_url=config.base_url, timeout=timeout),
            retry_policy=asset_retry_policy,
            transport=asset_transport,
        )

    async def aclose(self) -> None:
        await self._api.aclose()
        await self._assets.aclose()

    async def __aenter__(self) -> ImageProviderClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def submit(self, prompt: str, aspect_ratio: AspectRatio | str) -> JobHandle:
        """Submit a generation job.

        The ratio is validated before any network traffic.

        Raises:
            InvalidRequestError: Unknown ratio, empty prompt, 4xx, or a response
                without ``id`` / ``polling_url``
            ProviderUnavailableError: Network failure, 429 or 5xx
        """
        ratio = AspectRatio.parse(aspect_ratio)
        text = prompt.strip()
        if not text:
            raise InvalidRequestError("Prompt is required")

        width, height = ratio.dimensions
        body = SubmitRequest(prompt=text, width=width, height=height)
        try:
            resp = await self._api.post(self.config.model_path, json_body=body.model_dump())
            ack = self._api.parse_pydantic(resp, SubmitResponse)
        except ApiError as e:
            message = f"Failed to create generation task: {_provider_message(e)}"
            if e.is_transient:
                raise ProviderUnavailableError(message, cause=e) from e
            raise InvalidRequestError(message, cause=e) from e

        if not ack.id or not ack.polling_url:
            raise InvalidRequestError("Invalid response from provider: missing id or polling_url")

        logger.debug(
            "Submitted generation job",
            extra={"job_id": ack.id, "width": width, "height": height},
        )
        return JobHandle(job_id=ack.id, polling_url=ack.polling_url)

    async def poll(self, handle: JobHandle) -> JobStatus:
        """Read the job status from its polling URL.

        Raises:
            ProviderUnavailableError: The status could not be read
        """
        try:
            resp = await self._api.get(handle.polling_url)
            payload = self._api.parse_pydantic(resp, PollResponse)
        except ApiError as e:
            raise ProviderUnavailableError(
                f"Failed to get generation result for job {handle.job_id}: {e.message}", cause=e
            ) from e
        return payload.to_status()

    async def fetch_asset(self, asset_url: str) -> AssetPayload:
        """Download the generated image from its signed URL.

        Raises:
            AssetExpiredError: The URL was rejected as expired/unknown
            ProviderUnavailableError: Any other download failure
        """
        try:
            resp = await self._assets.get(asset_url)
        except ApiError as e:
            if e.status_code in _EXPIRED_ASSET_STATUSES:
                raise AssetExpiredError(
                    f"Signed asset URL no longer valid (status {e.status_code})", cause=e
                ) from e
            raise ProviderUnavailableError(f"Failed to download image: {e.message}", cause=e) from e

        if not resp.content:
            raise ProviderUnavailableError("Failed to download image: empty response body")

        content_type = resp.headers.get("content-type", "image/png").split(";")[0].strip()
        return AssetPayload(data=resp.content, content_type=content_type or "image/png")

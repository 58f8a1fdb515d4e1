"""Provider interface consumed by generation tasks."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from shotgen.core.api.imaging.models import AspectRatio, AssetPayload, JobHandle, JobStatus


@runtime_checkable
class ImageProvider(Protocol):
    """Remote text-to-image service with submit / poll / fetch semantics.

    Implementations keep no per-job state between calls.
    """

    async def submit(self, prompt: str, aspect_ratio: AspectRatio | str) -> JobHandle:
        """Submit a prompt.

        Raises:
            InvalidRequestError: Bad ratio/prompt, or handshake missing id/polling_url
            ProviderUnavailableError: Network failure, throttling or 5xx
        """
        ...

    async def poll(self, handle: JobHandle) -> JobStatus:
        """Read the job's current status. Safe to call repeatedly.

        Raises:
            ProviderUnavailableError: The status could not be read this time
        """
        ...

    async def fetch_asset(self, asset_url: str) -> AssetPayload:
        """Download a Ready job's asset from its signed URL.

        Raises:
            AssetExpiredError: The signed URL is no longer valid
            ProviderUnavailableError: Any other download failure
        """
        ...

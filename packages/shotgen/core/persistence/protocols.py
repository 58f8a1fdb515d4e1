"""Storage contracts consumed by generation tasks and batches."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from shotgen.core.persistence.models import GeneratedImage


@runtime_checkable
class AssetStore(Protocol):
    """Durable blob storage for generated image bytes."""

    async def put(self, subject_id: str, data: bytes, content_type: str) -> str:
        """Store bytes and return a durable URL for them."""
        ...


@runtime_checkable
class PersistenceGateway(Protocol):
    """Image record store with per-subject primary/thumbnail bookkeeping.

    All methods raise PersistenceError on storage failure.
    """

    async def store_asset(self, subject_id: str, data: bytes, content_type: str) -> str:
        """Persist image bytes and return their durable URL."""
        ...

    async def save_image(
        self, subject_id: str, asset_url: str, prompt: str | None
    ) -> GeneratedImage:
        """Append an image record."""
        ...

    async def list_images(self, subject_id: str) -> list[GeneratedImage]:
        """Images for a subject in creation order."""
        ...

    async def set_primary(self, image_id: str) -> None:
        """Make ``image_id`` the only primary image of its subject.

        Clearing the previous primary and marking the new one happen as one
        step with respect to other mutations of the same subject.
        """
        ...

    async def set_thumbnail(self, subject_id: str, asset_url: str | None) -> None:
        """Mirror the primary image URL onto the subject (None clears it)."""
        ...

    async def ensure_primary(self, subject_id: str) -> GeneratedImage | None:
        """Give the subject a primary image if it has none, and sync its thumbnail.

        The earliest image is promoted when no primary exists; an existing
        primary is kept. Reading the images and writing the flags and the
        thumbnail happen as one step with respect to other mutations of the
        same subject.

        Returns:
            The subject's primary image, or None if it has no images
        """
        ...

"""In-process PersistenceGateway.

Mutations of one subject are serialized with a per-subject asyncio.Lock so
concurrent batch completions can never leave two primary images behind.
"""

from __future__ import annotations

import asyncio
import logging

from shotgen.core.errors import PersistenceError
from shotgen.core.persistence.assets import InMemoryAssetStore
from shotgen.core.persistence.models import GeneratedImage
from shotgen.core.persistence.protocols import AssetStore

logger = logging.getLogger(__name__)


class InMemoryPersistenceGateway:
    """Dict-backed gateway.

    The first image saved for a subject is made primary and mirrored to the
    subject thumbnail, so a subject with exactly one image always has it as
    primary.
    """

    def __init__(self, asset_store: AssetStore | None = None) -> None:
        self.asset_store: AssetStore = asset_store or InMemoryAssetStore()
        self._images: dict[str, GeneratedImage] = {}
        self._by_subject: dict[str, list[str]] = {}
        self._thumbnails: dict[str, str | None] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, subject_id: str) -> asyncio.Lock:
        return self._locks.setdefault(subject_id, asyncio.Lock())

    async def store_asset(self, subject_id: str, data: bytes, content_type: str) -> str:
        try:
            return await self.asset_store.put(subject_id, data, content_type)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to store asset for {subject_id}: {e}", cause=e) from e

    async def save_image(
        self, subject_id: str, asset_url: str, prompt: str | None
    ) -> GeneratedImage:
        async with self._lock(subject_id):
            ids = self._by_subject.setdefault(subject_id, [])
            image = GeneratedImage(
                subject_id=subject_id,
                asset_url=asset_url,
                prompt=prompt,
                is_primary=not ids,
            )
            self._images[image.id] = image
            ids.append(image.id)
            if image.is_primary:
                self._thumbnails[subject_id] = asset_url
            logger.debug(
                f"Saved image {image.id} for {subject_id} (primary={image.is_primary})"
            )
            return image

    async def list_images(self, subject_id: str) -> list[GeneratedImage]:
        return [self._images[i] for i in self._by_subject.get(subject_id, [])]

    async def get_image(self, image_id: str) -> GeneratedImage | None:
        return self._images.get(image_id)

    async def set_primary(self, image_id: str) -> None:
        target = self._images.get(image_id)
        if target is None:
            raise PersistenceError(f"Image not found: {image_id}")
        async with self._lock(target.subject_id):
            self._mark_primary(target.subject_id, image_id)

    async def set_thumbnail(self, subject_id: str, asset_url: str | None) -> None:
        async with self._lock(subject_id):
            self._thumbnails[subject_id] = asset_url

    async def ensure_primary(self, subject_id: str) -> GeneratedImage | None:
        async with self._lock(subject_id):
            ids = self._by_subject.get(subject_id, [])
            if not ids:
                self._thumbnails[subject_id] = None
                return None
            primary_id = next((i for i in ids if self._images[i].is_primary), ids[0])
            return self._mark_primary(subject_id, primary_id)

    def _mark_primary(self, subject_id: str, image_id: str) -> GeneratedImage:
        # Caller holds the subject lock
        for other_id in self._by_subject.get(subject_id, []):
            image = self._images[other_id]
            wanted = other_id == image_id
            if image.is_primary != wanted:
                self._images[other_id] = image.model_copy(update={"is_primary": wanted})
        primary = self._images[image_id]
        self._thumbnails[subject_id] = primary.asset_url
        return primary

    async def get_thumbnail(self, subject_id: str) -> str | None:
        return self._thumbnails.get(subject_id)

    async def get_primary(self, subject_id: str) -> GeneratedImage | None:
        for image in await self.list_images(subject_id):
            if image.is_primary:
                return image
        return None

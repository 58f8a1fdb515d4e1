"""Tests for promote_first_image."""

from __future__ import annotations

import asyncio

from shotgen.core.persistence import InMemoryPersistenceGateway, promote_first_image
from tests.conftest import NoAutoPrimaryGateway


class _YieldingGateway(NoAutoPrimaryGateway):
    """Hands control back to the loop on every read, widening race windows."""

    async def list_images(self, subject_id):
        await asyncio.sleep(0)
        return await super().list_images(subject_id)


async def test_no_images_clears_thumbnail() -> None:
    gateway = InMemoryPersistenceGateway()
    await gateway.set_thumbnail("shot-1", "memory://stale.png")

    assert await promote_first_image(gateway, "shot-1") is None
    assert await gateway.get_thumbnail("shot-1") is None


async def test_earliest_image_is_promoted() -> None:
    gateway = NoAutoPrimaryGateway()
    first = await gateway.save_image("shot-1", "memory://a.png", None)
    await gateway.save_image("shot-1", "memory://b.png", None)

    primary = await promote_first_image(gateway, "shot-1")

    assert primary is not None and primary.id == first.id and primary.is_primary
    stored = await gateway.get_image(first.id)
    assert stored is not None and stored.is_primary
    assert await gateway.get_thumbnail("shot-1") == "memory://a.png"


async def test_existing_primary_is_kept_and_thumbnail_synced() -> None:
    gateway = InMemoryPersistenceGateway()
    await gateway.save_image("shot-1", "memory://a.png", None)
    chosen = await gateway.save_image("shot-1", "memory://b.png", None)
    await gateway.set_primary(chosen.id)
    await gateway.set_thumbnail("shot-1", "memory://drifted.png")

    primary = await promote_first_image(gateway, "shot-1")

    assert primary is not None and primary.id == chosen.id
    assert await gateway.get_thumbnail("shot-1") == "memory://b.png"


async def test_promotion_is_idempotent() -> None:
    gateway = NoAutoPrimaryGateway()
    await gateway.save_image("shot-1", "memory://a.png", None)

    once = await promote_first_image(gateway, "shot-1")
    twice = await promote_first_image(gateway, "shot-1")

    assert once.id == twice.id
    images = await gateway.list_images("shot-1")
    assert sum(img.is_primary for img in images) == 1


async def test_promotion_racing_user_choice_keeps_thumbnail_on_primary() -> None:
    for promote_first in (True, False):
        gateway = _YieldingGateway()
        await gateway.save_image("s", "url-a", None)
        b = await gateway.save_image("s", "url-b", None)

        calls = [promote_first_image(gateway, "s"), gateway.set_primary(b.id)]
        await asyncio.gather(*(calls if promote_first else reversed(calls)))

        primaries = [img for img in await gateway.list_images("s") if img.is_primary]
        assert len(primaries) == 1
        assert await gateway.get_thumbnail("s") == primaries[0].asset_url

"""Primary-image promotion shared by single-shot and batch flows."""

from __future__ import annotations

import logging

from shotgen.core.persistence.models import GeneratedImage
from shotgen.core.persistence.protocols import PersistenceGateway

logger = logging.getLogger(__name__)


async def promote_first_image(
    gateway: PersistenceGateway, subject_id: str
) -> GeneratedImage | None:
    """Ensure a subject with images has a primary, and sync its thumbnail.

    If no image is primary yet, the earliest one is promoted. An existing
    primary is left alone. The thumbnail always ends up equal to the
    primary's URL, or cleared when the subject has no images. The gateway
    does the whole read-modify-write under its per-subject serialization,
    so a concurrent ``set_primary`` cannot leave the thumbnail pointing at
    a demoted image.

    Returns:
        The subject's primary image, or None if it has no images

    Raises:
        PersistenceError: If the gateway fails
    """
    primary = await gateway.ensure_primary(subject_id)
    if primary is not None:
        logger.debug(f"Primary image for {subject_id} is {primary.id}")
    return primary


async def refresh_image(
    gateway: PersistenceGateway, image: GeneratedImage
) -> GeneratedImage:
    """Current stored version of ``image`` (flags may have changed since save)."""
    for stored in await gateway.list_images(image.subject_id):
        if stored.id == image.id:
            return stored
    return image

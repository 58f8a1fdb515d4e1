"""Image record persistence and primary-image bookkeeping."""

from shotgen.core.persistence.assets import InMemoryAssetStore, LocalAssetStore
from shotgen.core.persistence.memory import InMemoryPersistenceGateway
from shotgen.core.persistence.models import GeneratedImage
from shotgen.core.persistence.primary import promote_first_image
from shotgen.core.persistence.protocols import AssetStore, PersistenceGateway

__all__ = [
    "AssetStore",
    "PersistenceGateway",
    "GeneratedImage",
    "InMemoryAssetStore",
    "LocalAssetStore",
    "InMemoryPersistenceGateway",
    "promote_first_image",
]

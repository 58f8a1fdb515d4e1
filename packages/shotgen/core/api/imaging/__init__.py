"""Text-to-image provider client."""

from shotgen.core.api.imaging.client import ImageProviderClient
from shotgen.core.api.imaging.models import (
    AspectRatio,
    AssetPayload,
    JobHandle,
    JobState,
    JobStatus,
    PollResponse,
    SubmitResponse,
)
from shotgen.core.api.imaging.protocols import ImageProvider

__all__ = [
    "ImageProvider",
    "ImageProviderClient",
    "AspectRatio",
    "AssetPayload",
    "JobHandle",
    "JobState",
    "JobStatus",
    "PollResponse",
    "SubmitResponse",
]

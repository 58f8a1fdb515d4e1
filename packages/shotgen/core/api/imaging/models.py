"""Wire models and value types for the image generation provider."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shotgen.core.errors import InvalidRequestError


class AspectRatio(str, Enum):
    """Supported frame shapes for a project."""

    LANDSCAPE = "16:9"
    SQUARE = "1:1"
    PORTRAIT = "9:16"

    @property
    def dimensions(self) -> tuple[int, int]:
        """Pixel (width, height) requested from the provider."""
        return _DIMENSIONS[self]

    @classmethod
    def parse(cls, value: AspectRatio | str) -> AspectRatio:
        """Coerce a raw ratio string, rejecting anything outside the table.

        Raises:
            InvalidRequestError: If ``value`` is not one of 16:9, 1:1, 9:16
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError as e:
            allowed = ", ".join(r.value for r in cls)
            raise InvalidRequestError(
                f"Invalid aspect ratio {value!r}. Must be one of: {allowed}", cause=e
            ) from e


_DIMENSIONS: dict[AspectRatio, tuple[int, int]] = {
    AspectRatio.LANDSCAPE: (1024, 576),
    AspectRatio.SQUARE: (1024, 1024),
    AspectRatio.PORTRAIT: (576, 1024),
}


class JobHandle(BaseModel):
    """Identifier plus poll URL returned by the provider for a submitted job."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    polling_url: str


class JobState(str, Enum):
    """Provider-side state as seen by a single poll."""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class JobStatus(BaseModel):
    """Normalized result of one poll.

    Attributes:
        state: Pending, Ready or Failed
        asset_url: Signed asset URL (Ready only)
        reason: Failure reason (Failed only)
        raw_status: Status string exactly as the provider sent it
    """

    model_config = ConfigDict(frozen=True)

    state: JobState
    asset_url: str | None = None
    reason: str | None = None
    raw_status: str = ""

    @classmethod
    def pending(cls, raw_status: str = "Pending") -> JobStatus:
        return cls(state=JobState.PENDING, raw_status=raw_status)

    @classmethod
    def ready(cls, asset_url: str, raw_status: str = "Ready") -> JobStatus:
        return cls(state=JobState.READY, asset_url=asset_url, raw_status=raw_status)

    @classmethod
    def failed(cls, reason: str, raw_status: str = "Failed") -> JobStatus:
        return cls(state=JobState.FAILED, reason=reason, raw_status=raw_status)


class SubmitRequest(BaseModel):
    """Body of a generation submission."""

    prompt: str
    width: int
    height: int


class SubmitResponse(BaseModel):
    """Submission acknowledgement. Both fields are required for a usable job."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    polling_url: str | None = None


class PollResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    sample: str | None = None


# Moderation statuses are polled through like Pending; a rejected prompt
# therefore surfaces as a timeout rather than a failure.
FAILED_STATUSES = frozenset({"Error", "Failed"})
READY_STATUS = "Ready"


class PollResponse(BaseModel):
    """Raw poll payload: ``{status, result?, details?}``."""

    model_config = ConfigDict(extra="ignore")

    status: str = ""
    result: PollResult | None = None
    details: dict[str, Any] | None = Field(default=None)

    def to_status(self) -> JobStatus:
        """Normalize into a JobStatus.

        Ready without a sample URL is not usable yet and reads as Pending.
        Unknown statuses (including moderation variants) also read as Pending.
        """
        if self.status == READY_STATUS and self.result and self.result.sample:
            return JobStatus.ready(self.result.sample, raw_status=self.status)
        if self.status in FAILED_STATUSES:
            reason = None
            if self.details:
                reason = self.details.get("message")
            return JobStatus.failed(
                str(reason) if reason else "Generation task failed", raw_status=self.status
            )
        return JobStatus.pending(raw_status=self.status or "Pending")


class AssetPayload(BaseModel):
    """Downloaded asset bytes plus their media type."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    content_type: str = "image/png"

    @property
    def size(self) -> int:
        return len(self.data)

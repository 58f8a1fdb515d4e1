"""Persisted image records."""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from pydantic import BaseModel, ConfigDict, Field


class GeneratedImage(BaseModel):
    """A generated image attached to a subject (a shot or a character).

    Attributes:
        id: Record identifier
        subject_id: Owning shot/character
        asset_url: Durable URL of the stored image
        prompt: Prompt that produced the image
        is_primary: Whether this is the subject's representative image
        created_at: Creation timestamp (UTC)
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    subject_id: str
    asset_url: str
    prompt: str | None = None
    is_primary: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

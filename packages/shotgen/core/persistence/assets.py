"""Asset stores: where generated image bytes end up.

LocalAssetStore writes atomically (temp file + replace) through aiofiles.
"""

from __future__ import annotations

import hashlib
import logging
import mimetypes
from pathlib import Path
import re
import uuid

import aiofiles
import aiofiles.os

from shotgen.core.errors import PersistenceError

logger = logging.getLogger(__name__)


def sanitize_path_component(component: str) -> str:
    """Make a subject id safe to use as a directory name.

    Example:
        >>> sanitize_path_component("scene-1/shot-2")
        'scene-1_shot-2'
    """
    return re.sub(r"[^a-zA-Z0-9._-]", "_", component) or "_"


def extension_for(content_type: str) -> str:
    """File extension (without dot) for an image content type."""
    ext = mimetypes.guess_extension(content_type.split(";")[0].strip()) or ".png"
    if ext == ".jpe":
        ext = ".jpg"
    return ext.lstrip(".")


def asset_name(data: bytes, content_type: str) -> str:
    """Content-addressed file name: identical bytes map to the same name."""
    digest = hashlib.sha256(data).hexdigest()[:32]
    return f"{digest}.{extension_for(content_type)}"


class LocalAssetStore:
    """Stores assets under ``root/<subject>/<sha256>.<ext>``.

    Args:
        root: Directory that receives the assets
        public_base_url: URL prefix that serves ``root``; ``file://`` URLs otherwise
    """

    def __init__(self, root: str | Path, public_base_url: str | None = None) -> None:
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    async def put(self, subject_id: str, data: bytes, content_type: str) -> str:
        relative = Path(sanitize_path_component(subject_id)) / asset_name(data, content_type)
        target = self.root / relative
        tmp = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
        try:
            await aiofiles.os.makedirs(target.parent, exist_ok=True)
            async with aiofiles.open(tmp, "wb") as f:
                await f.write(data)
            await aiofiles.os.replace(tmp, target)
        except OSError as e:
            raise PersistenceError(f"Failed to write asset {target}: {e}", cause=e) from e

        logger.debug(f"Stored asset {relative} ({len(data)} bytes)")
        if self.public_base_url:
            return f"{self.public_base_url}/{relative.as_posix()}"
        return target.resolve().as_uri()


class InMemoryAssetStore:
    """Keeps assets in a dict; URLs use the ``memory://`` scheme."""

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}

    async def put(self, subject_id: str, data: bytes, content_type: str) -> str:
        url = f"memory://{sanitize_path_component(subject_id)}/{asset_name(data, content_type)}"
        self.blobs[url] = data
        return url

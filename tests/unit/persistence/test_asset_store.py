"""Tests for asset naming and LocalAssetStore."""

from __future__ import annotations

from pathlib import Path

import pytest

from shotgen.core.errors import PersistenceError
from shotgen.core.persistence.assets import (
    LocalAssetStore,
    asset_name,
    extension_for,
    sanitize_path_component,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("shot-1", "shot-1"),
        ("scene-1/shot-2", "scene-1_shot-2"),
        ("../etc", ".._etc"),
        ("", "_"),
    ],
)
def test_sanitize_path_component(raw: str, expected: str) -> None:
    assert sanitize_path_component(raw) == expected


@pytest.mark.parametrize(
    ("content_type", "ext"),
    [("image/png", "png"), ("image/jpeg", "jpg"), ("image/png; charset=binary", "png")],
)
def test_extension_for(content_type: str, ext: str) -> None:
    assert extension_for(content_type) == ext


def test_asset_name_is_content_addressed() -> None:
    assert asset_name(b"a", "image/png") == asset_name(b"a", "image/png")
    assert asset_name(b"a", "image/png") != asset_name(b"b", "image/png")
    assert len(asset_name(b"a", "image/png")) == 32 + len(".png")


async def test_local_store_writes_file_and_returns_file_url(tmp_path: Path) -> None:
    store = LocalAssetStore(tmp_path / "assets")

    url = await store.put("scene-1/shot-1", b"\x89PNG", "image/png")

    files = list((tmp_path / "assets" / "scene-1_shot-1").iterdir())
    assert len(files) == 1
    assert files[0].read_bytes() == b"\x89PNG"
    assert url == files[0].resolve().as_uri()


async def test_local_store_public_base_url(tmp_path: Path) -> None:
    store = LocalAssetStore(tmp_path, public_base_url="https://cdn.example/assets/")

    url = await store.put("shot-1", b"data", "image/jpeg")

    name = asset_name(b"data", "image/jpeg")
    assert url == f"https://cdn.example/assets/shot-1/{name}"
    assert (tmp_path / "shot-1" / name).exists()


async def test_local_store_leaves_no_temp_files(tmp_path: Path) -> None:
    store = LocalAssetStore(tmp_path)
    await store.put("shot-1", b"one", "image/png")
    await store.put("shot-1", b"one", "image/png")

    names = [p.name for p in (tmp_path / "shot-1").iterdir()]
    assert len(names) == 1
    assert not any(n.endswith(".tmp") for n in names)


async def test_local_store_write_failure_is_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocked"
    blocker.write_text("not a directory")

    with pytest.raises(PersistenceError):
        await LocalAssetStore(blocker).put("shot-1", b"x", "image/png")

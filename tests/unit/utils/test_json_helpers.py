"""Tests for JSON helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from shotgen.core.errors import ErrorKind
from shotgen.core.generation.models import failed_outcome
from shotgen.core.utils.json import read_json, read_json_any, write_json


def test_write_creates_parents_and_serializes_models(tmp_path: Path) -> None:
    target = tmp_path / "reports" / "run.json"
    outcome = failed_outcome(ErrorKind.TIMED_OUT, "slow")

    write_json(target, {"outcome": outcome, "dir": tmp_path})

    data = read_json(target)
    assert data["outcome"]["status"] == "failed"
    assert data["outcome"]["error_kind"] == "timed_out"
    assert data["dir"] == str(tmp_path)


def test_read_json_requires_object(tmp_path: Path) -> None:
    path = tmp_path / "list.json"
    path.write_text("[1, 2]")

    assert read_json_any(path) == [1, 2]
    with pytest.raises(ValueError):
        read_json(path)


def test_non_ascii_is_preserved(tmp_path: Path) -> None:
    path = tmp_path / "prompt.json"
    write_json(path, {"prompt": "Château au crépuscule"})
    assert "Château" in path.read_text(encoding="utf-8")

"""Tests for provider value types."""

from __future__ import annotations

import pytest

from shotgen.core.api.imaging.models import AspectRatio, JobState, PollResponse
from shotgen.core.errors import ErrorKind, InvalidRequestError


def test_dimension_table() -> None:
    assert AspectRatio.LANDSCAPE.dimensions == (1024, 576)
    assert AspectRatio.SQUARE.dimensions == (1024, 1024)
    assert AspectRatio.PORTRAIT.dimensions == (576, 1024)


def test_parse_accepts_enum_and_padded_string() -> None:
    assert AspectRatio.parse(AspectRatio.SQUARE) is AspectRatio.SQUARE
    assert AspectRatio.parse(" 9:16 ") is AspectRatio.PORTRAIT


def test_parse_rejects_unknown_ratio() -> None:
    with pytest.raises(InvalidRequestError) as exc_info:
        AspectRatio.parse("4:3")
    assert exc_info.value.kind == ErrorKind.INVALID_REQUEST
    assert "16:9" in exc_info.value.message


def test_failed_without_details_has_default_reason() -> None:
    status = PollResponse.model_validate({"status": "Error"}).to_status()
    assert status.state == JobState.FAILED
    assert status.reason == "Generation task failed"
    assert status.raw_status == "Error"


def test_empty_status_reads_as_pending() -> None:
    status = PollResponse.model_validate({}).to_status()
    assert status.state == JobState.PENDING

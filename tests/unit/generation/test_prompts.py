"""Tests for PromptBuilder."""

from __future__ import annotations

import pytest

from shotgen.core.api.text.models import Character
from shotgen.core.generation.models import ArtStyle
from shotgen.core.generation.prompts import PromptBuilder


def test_character_prompt_full() -> None:
    prompt = PromptBuilder(ArtStyle.SKETCH).character(
        Character(name=" Mara ", description="a tall sailor.", clothes="an oilskin coat")
    )
    assert prompt.startswith("Character portrait of Mara, a tall sailor. Wearing an oilskin coat.")
    assert "Full body, neutral background." in prompt
    assert prompt.endswith("Style: Sketch, rough storyboard sketch, loose lines.")


def test_character_prompt_name_only() -> None:
    prompt = PromptBuilder().character(Character(name="Bo", description="  ", clothes=None))
    assert prompt.startswith("Character portrait of Bo. Full body")
    assert "Wearing" not in prompt


@pytest.mark.parametrize("style", list(ArtStyle))
def test_every_style_has_a_hint(style: ArtStyle) -> None:
    suffix = PromptBuilder(style).style_suffix()
    assert suffix.startswith(f"Style: {style.value}, ")
    assert suffix.endswith(".")

"""Prompt construction for storyboard images."""

from __future__ import annotations

from shotgen.core.api.text.models import Character
from shotgen.core.generation.models import ArtStyle

_STYLE_HINTS: dict[ArtStyle, str] = {
    ArtStyle.CINEMATIC: "cinematic film still, dramatic lighting, shallow depth of field",
    ArtStyle.SKETCH: "rough storyboard sketch, loose lines",
    ArtStyle.JAPANESE_INK_PAINTING: "sumi-e ink wash painting, brush strokes on rice paper",
    ArtStyle.DYNAMIC_INK: "dynamic ink illustration, bold strokes, strong motion",
    ArtStyle.COMPUTER_ANIMATION: "3D computer animation render, soft global illumination",
    ArtStyle.PENCIL_DRAWING: "graphite pencil drawing, cross-hatching",
    ArtStyle.CARTOON: "cartoon style, clean outlines, flat colors",
    ArtStyle.CHILDRENS_ILLUSTRATION: "children's book illustration, warm and friendly",
}


class PromptBuilder:
    """Builds provider prompts from storyboard entities and the project style.

    Example:
        >>> builder = PromptBuilder(ArtStyle.SKETCH)
        >>> builder.character(Character(name="Mara", description="a tall sailor"))
        'Character portrait of Mara, a tall sailor. Style: Sketch, rough storyboard sketch, ...'
    """

    def __init__(self, art_style: ArtStyle = ArtStyle.CINEMATIC) -> None:
        self.art_style = art_style

    def style_suffix(self) -> str:
        return f"Style: {self.art_style.value}, {_STYLE_HINTS[self.art_style]}."

    def character(self, character: Character) -> str:
        """Full-body reference portrait prompt for a cast member."""
        subject = character.name.strip()
        if character.description and character.description.strip():
            subject = f"{subject}, {character.description.strip().rstrip('.')}"
        parts = [f"Character portrait of {subject}."]
        if character.clothes and character.clothes.strip():
            parts.append(f"Wearing {character.clothes.strip().rstrip('.')}.")
        parts.append("Full body, neutral background.")
        parts.append(self.style_suffix())
        return " ".join(parts)

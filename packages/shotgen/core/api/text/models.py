"""Wire models for the text services (prompt cleaning, scenario analysis)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CleanPromptRequest(BaseModel):
    script: str


class CleanPromptResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    cleaned_prompt: str = Field(default="", alias="cleanedPrompt")


class ScenarioRequest(BaseModel):
    scenario: str


class ShotScript(BaseModel):
    """One shot: its description, dialogue or action."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    script: str = Field(min_length=1)
    subject_id: str | None = None


class SceneBreakdown(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(min_length=1)
    shots: list[ShotScript]


class Character(BaseModel):
    """A cast member extracted from a scenario."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(min_length=1)
    description: str | None = None
    clothes: str | None = None
    subject_id: str | None = None


class ScenarioAnalysis(BaseModel):
    """Scenes -> shots breakdown plus the cast of a scenario."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    scenes: list[SceneBreakdown]
    characters: list[Character] = Field(default_factory=list)

    def shot_subjects(self) -> list[tuple[str, ShotScript]]:
        """Shots in scene order paired with their subject ids.

        Shots without an explicit id are addressed as ``scene-<n>/shot-<m>``
        (1-based).
        """
        out: list[tuple[str, ShotScript]] = []
        for scene_no, scene in enumerate(self.scenes, start=1):
            for shot_no, shot in enumerate(scene.shots, start=1):
                out.append((shot.subject_id or f"scene-{scene_no}/shot-{shot_no}", shot))
        return out

    @property
    def shot_count(self) -> int:
        return sum(len(scene.shots) for scene in self.scenes)

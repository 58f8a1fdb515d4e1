"""End-user generation flows: single shot, cast batch, scenario batch."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from shotgen.core.api.imaging.protocols import ImageProvider
from shotgen.core.api.text.models import Character, ScenarioAnalysis
from shotgen.core.api.text.sanitizer import PromptSanitizer
from shotgen.core.api.text.scenario import ScenarioAnalyzerClient
from shotgen.core.config.models import GenerationSettings
from shotgen.core.generation.batch import BatchOrchestrator, ItemCallback
from shotgen.core.generation.models import BatchItem, BatchOutcome, Project, TaskOutcome
from shotgen.core.generation.prompts import PromptBuilder
from shotgen.core.generation.task import DEFAULT_SIGNED_URL_TTL_S, GenerationTask
from shotgen.core.persistence.primary import promote_first_image, refresh_image
from shotgen.core.persistence.protocols import PersistenceGateway

logger = logging.getLogger(__name__)


def character_subject_id(index: int, character: Character) -> str:
    """Subject id for a cast member (``character-<n>``, 1-based, unless given)."""
    return character.subject_id or f"character-{index + 1}"


class StoryboardGenerator:
    """Generates storyboard images for a project.

    Every batch flow gets its own BatchOrchestrator, so concurrent flows on
    one generator do not share run-state.

    Args:
        provider: Image provider
        gateway: Persistence gateway
        project: Aspect ratio and art style of the storyboard
        sanitizer: Optional prompt cleaner for shot scripts
        analyzer: Optional scenario analyzer (needed by ``analyze_and_generate``)
        settings: Polling settings and concurrency cap
        signed_url_ttl_s: Validity window of signed asset URLs
    """

    def __init__(
        self,
        provider: ImageProvider,
        gateway: PersistenceGateway,
        project: Project | None = None,
        *,
        sanitizer: PromptSanitizer | None = None,
        analyzer: ScenarioAnalyzerClient | None = None,
        settings: GenerationSettings | None = None,
        signed_url_ttl_s: float = DEFAULT_SIGNED_URL_TTL_S,
    ) -> None:
        self.provider = provider
        self.gateway = gateway
        self.project = project or Project()
        self.sanitizer = sanitizer
        self.analyzer = analyzer
        self.settings = settings or GenerationSettings()
        self.signed_url_ttl_s = signed_url_ttl_s
        self.prompts = PromptBuilder(self.project.art_style)

    def _orchestrator(self, on_item_complete: ItemCallback | None) -> BatchOrchestrator:
        return BatchOrchestrator(
            self.provider,
            self.gateway,
            sanitizer=self.sanitizer,
            settings=self.settings,
            signed_url_ttl_s=self.signed_url_ttl_s,
            on_item_complete=on_item_complete,
        )

    async def generate_shot(self, shot_id: str, script: str) -> TaskOutcome:
        """Generate one image for a shot from its (raw) script."""
        task = GenerationTask(
            self.provider,
            self.gateway,
            script,
            subject_id=shot_id,
            aspect_ratio=self.project.aspect_ratio,
            sanitizer=self.sanitizer,
            settings=self.settings,
            signed_url_ttl_s=self.signed_url_ttl_s,
        )
        outcome = await task.run()
        if outcome.ok and outcome.image is not None:
            try:
                await promote_first_image(self.gateway, shot_id)
                image = await refresh_image(self.gateway, outcome.image)
            except Exception as e:
                logger.warning(f"Primary promotion failed for {shot_id}: {e}")
            else:
                outcome = outcome.model_copy(update={"image": image})
        return outcome

    async def generate_cast(
        self,
        characters: Sequence[Character],
        *,
        on_item_complete: ItemCallback | None = None,
    ) -> list[BatchOutcome]:
        """Generate one reference portrait per character."""
        items = [
            BatchItem(
                subject_id=character_subject_id(i, character),
                prompt=self.prompts.character(character),
                aspect_ratio=self.project.aspect_ratio,
                clean=False,
            )
            for i, character in enumerate(characters)
        ]
        logger.info(f"Generating cast: {len(items)} character(s)")
        return await self._orchestrator(on_item_complete).run_batch(items)

    async def generate_scenario(
        self,
        analysis: ScenarioAnalysis,
        *,
        on_item_complete: ItemCallback | None = None,
    ) -> list[BatchOutcome]:
        """Generate one image per shot, in scene order."""
        items = [
            BatchItem(
                subject_id=subject_id,
                prompt=shot.script,
                aspect_ratio=self.project.aspect_ratio,
                clean=True,
            )
            for subject_id, shot in analysis.shot_subjects()
        ]
        logger.info(
            f"Generating scenario: {len(analysis.scenes)} scene(s), {len(items)} shot(s)"
        )
        return await self._orchestrator(on_item_complete).run_batch(items)

    async def analyze_and_generate(
        self,
        scenario: str,
        *,
        on_item_complete: ItemCallback | None = None,
    ) -> tuple[ScenarioAnalysis, list[BatchOutcome]]:
        """Break a free-text scenario into shots, then generate every shot.

        Raises:
            RuntimeError: If no analyzer is configured
            ScenarioFormatError: If the analysis is structurally invalid
            ProviderUnavailableError: If the analyzer cannot be reached
        """
        if self.analyzer is None:
            raise RuntimeError("Scenario analysis requires a configured text service")
        analysis = await self.analyzer.analyze(scenario)
        outcomes = await self.generate_scenario(analysis, on_item_complete=on_item_complete)
        return analysis, outcomes

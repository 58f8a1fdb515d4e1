"""Text services: prompt cleaning and scenario analysis."""

from shotgen.core.api.text.models import (
    Character,
    SceneBreakdown,
    ScenarioAnalysis,
    ShotScript,
)
from shotgen.core.api.text.sanitizer import (
    PromptSanitizer,
    PromptSanitizerClient,
    clean_or_fallback,
)
from shotgen.core.api.text.scenario import (
    ScenarioAnalyzerClient,
    ScenarioFormatError,
    parse_analysis,
    strip_code_fences,
)

__all__ = [
    "PromptSanitizer",
    "PromptSanitizerClient",
    "clean_or_fallback",
    "ScenarioAnalyzerClient",
    "ScenarioFormatError",
    "parse_analysis",
    "strip_code_fences",
    "ScenarioAnalysis",
    "SceneBreakdown",
    "ShotScript",
    "Character",
]

"""Generation tasks, batches, and storyboard flows."""

from shotgen.core.generation.batch import BatchAlreadyRunningError, BatchOrchestrator
from shotgen.core.generation.flows import StoryboardGenerator
from shotgen.core.generation.models import (
    ArtStyle,
    BatchItem,
    BatchItemStatus,
    BatchOutcome,
    BatchReport,
    GenerationJob,
    JobPhase,
    OutcomeStatus,
    Project,
    TaskOutcome,
    TaskState,
)
from shotgen.core.generation.prompts import PromptBuilder
from shotgen.core.generation.task import GenerationTask

__all__ = [
    "GenerationTask",
    "BatchOrchestrator",
    "BatchAlreadyRunningError",
    "StoryboardGenerator",
    "PromptBuilder",
    "ArtStyle",
    "BatchItem",
    "BatchItemStatus",
    "BatchOutcome",
    "BatchReport",
    "GenerationJob",
    "JobPhase",
    "OutcomeStatus",
    "Project",
    "TaskOutcome",
    "TaskState",
]

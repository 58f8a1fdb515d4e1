"""Domain models for generation tasks and batches.

Outcome types are immutable and never carry exceptions, only an ErrorKind
and a human readable reason, so they can be logged, serialized, and
compared freely.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from shotgen.core.api.imaging.models import AspectRatio, JobHandle
from shotgen.core.errors import ErrorKind
from shotgen.core.persistence.models import GeneratedImage


class JobPhase(str, Enum):
    """Lifecycle of a provider job as tracked by a task."""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class GenerationJob(BaseModel):
    """One in-flight provider request.

    Attributes:
        handle: Job id and polling URL from the provider
        phase: Current phase of the job
        asset_url: Signed asset URL once Ready
        ready_at: When Ready was first observed (starts the signing window)
    """

    handle: JobHandle
    phase: JobPhase = JobPhase.PENDING
    asset_url: str | None = None
    ready_at: datetime | None = None

    @property
    def job_id(self) -> str:
        return self.handle.job_id


class TaskState(str, Enum):
    """States of a single generation task."""

    CREATED = "created"
    SUBMITTING = "submitting"
    POLLING = "polling"
    FETCHING = "fetching"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.DONE, TaskState.FAILED, TaskState.TIMED_OUT)


class OutcomeStatus(str, Enum):
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class TaskOutcome(BaseModel):
    """Terminal result of one generation task.

    Exactly one of: Done with an image, Failed with a kind and reason, or
    TimedOut (the provider job may still finish on its side).
    """

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    image: GeneratedImage | None = None
    error_kind: ErrorKind | None = None
    reason: str | None = None
    job_id: str | None = None
    poll_attempts: int = 0
    prompt_used: str | None = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.DONE


# Helper functions to create outcomes


def done_outcome(image: GeneratedImage, **fields: object) -> TaskOutcome:
    return TaskOutcome(status=OutcomeStatus.DONE, image=image, **fields)  # type: ignore[arg-type]


def failed_outcome(kind: ErrorKind, reason: str, **fields: object) -> TaskOutcome:
    return TaskOutcome(
        status=OutcomeStatus.FAILED, error_kind=kind, reason=reason, **fields  # type: ignore[arg-type]
    )


def timed_out_outcome(attempts: int, **fields: object) -> TaskOutcome:
    return TaskOutcome(
        status=OutcomeStatus.TIMED_OUT,
        error_kind=ErrorKind.TIMED_OUT,
        reason=f"Generation not ready after {attempts} poll attempts",
        poll_attempts=attempts,
        **fields,  # type: ignore[arg-type]
    )


class BatchItem(BaseModel):
    """One prompt in a batch, identified by its input position and subject.

    Attributes:
        index: Position in the input list (assigned by the orchestrator)
        subject_id: Shot/character that receives the image
        prompt: Prompt text
        aspect_ratio: Frame shape
        clean: Whether the prompt goes through the sanitizer first
    """

    model_config = ConfigDict(frozen=True)

    index: int = 0
    subject_id: str = Field(min_length=1)
    prompt: str
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE
    clean: bool = True


class BatchItemStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class BatchOutcome(BaseModel):
    """Pairs a batch item with its terminal outcome."""

    model_config = ConfigDict(frozen=True)

    item: BatchItem
    outcome: TaskOutcome

    @property
    def status(self) -> OutcomeStatus:
        return self.outcome.status


class BatchReport(BaseModel):
    """Summary of a finished batch for callers that surface results."""

    model_config = ConfigDict(frozen=True)

    total: int
    done: int
    failed: int
    timed_out: int
    succeeded_subjects: list[str] = Field(default_factory=list)
    failed_subjects: list[str] = Field(default_factory=list)

    @property
    def all_done(self) -> bool:
        return self.done == self.total

    @classmethod
    def from_outcomes(cls, outcomes: list[BatchOutcome]) -> BatchReport:
        succeeded: list[str] = []
        failed: list[str] = []
        for o in outcomes:
            target = succeeded if o.outcome.ok else failed
            if o.item.subject_id not in target:
                target.append(o.item.subject_id)
        return cls(
            total=len(outcomes),
            done=sum(1 for o in outcomes if o.status == OutcomeStatus.DONE),
            failed=sum(1 for o in outcomes if o.status == OutcomeStatus.FAILED),
            timed_out=sum(1 for o in outcomes if o.status == OutcomeStatus.TIMED_OUT),
            succeeded_subjects=succeeded,
            failed_subjects=failed,
        )


class ArtStyle(str, Enum):
    CINEMATIC = "Cinematic"
    SKETCH = "Sketch"
    JAPANESE_INK_PAINTING = "Japanese Ink Painting"
    DYNAMIC_INK = "Dynamic Ink"
    COMPUTER_ANIMATION = "Computer Animation"
    PENCIL_DRAWING = "Pencil Drawing"
    CARTOON = "Cartoon"
    CHILDRENS_ILLUSTRATION = "Childrens Illustration"


class Project(BaseModel):
    """Storyboard project settings shared by every generation in it."""

    model_config = ConfigDict(frozen=True)

    name: str = "Untitled"
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE
    art_style: ArtStyle = ArtStyle.CINEMATIC

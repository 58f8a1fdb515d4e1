"""Batch orchestrator: fan prompts out to concurrent generation tasks.

One outcome per input item, aligned to input order, no matter how the
individual tasks end. Run-state lives on the orchestrator instance, so two
orchestrators never block each other.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
import logging
import time

from shotgen.core.api.imaging.protocols import ImageProvider
from shotgen.core.api.text.sanitizer import PromptSanitizer
from shotgen.core.config.models import GenerationSettings
from shotgen.core.errors import ErrorKind
from shotgen.core.generation.models import (
    BatchItem,
    BatchItemStatus,
    BatchOutcome,
    BatchReport,
    OutcomeStatus,
    TaskOutcome,
    failed_outcome,
)
from shotgen.core.generation.task import DEFAULT_SIGNED_URL_TTL_S, GenerationTask
from shotgen.core.persistence.models import GeneratedImage
from shotgen.core.persistence.primary import promote_first_image
from shotgen.core.persistence.protocols import PersistenceGateway

logger = logging.getLogger(__name__)

ItemCallback = Callable[[BatchOutcome], None]

_STATUS_BY_OUTCOME = {
    OutcomeStatus.DONE: BatchItemStatus.DONE,
    OutcomeStatus.FAILED: BatchItemStatus.FAILED,
    OutcomeStatus.TIMED_OUT: BatchItemStatus.TIMED_OUT,
}


class BatchAlreadyRunningError(RuntimeError):
    """run_batch() was called while this orchestrator's previous batch is in flight."""


class BatchOrchestrator:
    """Runs one GenerationTask per BatchItem concurrently.

    Handles:
    - Optional concurrency cap (semaphore); unbounded by default
    - Failure isolation (no item outcome depends on a sibling)
    - Per-item status tracking and completion callback
    - Cancellation of in-flight items
    - First-image-becomes-primary once per subject after persistence

    Args:
        provider: Image provider shared by all tasks
        gateway: Persistence gateway shared by all tasks
        sanitizer: Optional prompt cleaner for items with ``clean=True``
        settings: Polling settings and concurrency cap
        signed_url_ttl_s: Validity window of signed asset URLs
        on_item_complete: Called once per item as it reaches a terminal outcome

    Example:
        >>> orchestrator = BatchOrchestrator(provider, gateway)
        >>> outcomes = await orchestrator.run_batch(items)
        >>> report = BatchReport.from_outcomes(outcomes)
    """

    def __init__(
        self,
        provider: ImageProvider,
        gateway: PersistenceGateway,
        *,
        sanitizer: PromptSanitizer | None = None,
        settings: GenerationSettings | None = None,
        signed_url_ttl_s: float = DEFAULT_SIGNED_URL_TTL_S,
        on_item_complete: ItemCallback | None = None,
    ) -> None:
        self.provider = provider
        self.gateway = gateway
        self.sanitizer = sanitizer
        self.settings = settings or GenerationSettings()
        self.signed_url_ttl_s = signed_url_ttl_s
        self.on_item_complete = on_item_complete

        self.statuses: list[BatchItemStatus] = []
        self._running = False
        self._cancel_requested = False
        self._tasks: list[asyncio.Task[BatchOutcome]] = []
        # Outcomes already delivered, by item index
        self._finished: dict[int, BatchOutcome] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    def cancel(self) -> None:
        """Abandon every in-flight item of the current batch.

        Abandoned items are reported as Failed with kind ``cancelled``;
        run_batch() still returns one outcome per item. Items that already
        reached an outcome keep it, including the one whose
        ``on_item_complete`` callback is calling this method.
        """
        if not self._running:
            return
        self._cancel_requested = True
        current = asyncio.current_task()
        pending = [
            t
            for i, t in enumerate(self._tasks)
            if not t.done() and t is not current and i not in self._finished
        ]
        logger.warning(f"Cancelling batch ({len(pending)} item(s) in flight)")
        for t in pending:
            t.cancel()

    async def run_batch(self, items: Sequence[BatchItem]) -> list[BatchOutcome]:
        """Generate every item and return outcomes aligned to input order.

        Never raises for item failures. Returns only after every item has
        reached a terminal outcome.

        Raises:
            BatchAlreadyRunningError: If this instance is already running a batch
        """
        if self._running:
            raise BatchAlreadyRunningError("A batch is already running on this orchestrator")
        self._running = True
        self._cancel_requested = False
        self._finished = {}

        indexed = [item.model_copy(update={"index": i}) for i, item in enumerate(items)]
        self.statuses = [BatchItemStatus.QUEUED] * len(indexed)
        start_time = time.perf_counter()

        try:
            if not indexed:
                return []

            cap = self.settings.max_concurrency
            semaphore = asyncio.Semaphore(cap) if cap else None
            logger.debug(
                f"Running batch of {len(indexed)} item(s) (max_concurrency={cap or 'unbounded'})"
            )

            self._tasks = [
                asyncio.create_task(self._run_item(item, semaphore)) for item in indexed
            ]
            results = await asyncio.gather(*self._tasks, return_exceptions=True)

            outcomes: list[BatchOutcome] = []
            for item, result in zip(indexed, results):
                # A delivered outcome wins over a late cancellation of its task
                delivered = self._finished.get(item.index)
                if delivered is not None:
                    outcomes.append(delivered)
                    continue
                # Task never got to run its body (cancelled early) or broke outside it
                if isinstance(result, asyncio.CancelledError):
                    outcome = failed_outcome(ErrorKind.CANCELLED, "Batch cancelled")
                else:
                    logger.error(
                        f"Unexpected exception for batch item {item.index}", exc_info=result
                    )
                    outcome = failed_outcome(ErrorKind.UNEXPECTED, str(result))
                outcomes.append(self._finish(item, outcome))

            outcomes = await self._promote_primaries(outcomes)

            report = BatchReport.from_outcomes(outcomes)
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"Batch complete in {duration_ms:.0f}ms: {report.done} done, "
                f"{report.failed} failed, {report.timed_out} timed out"
            )
            return outcomes
        finally:
            self._tasks = []
            self._finished = {}
            self._running = False

    async def _run_item(
        self, item: BatchItem, semaphore: asyncio.Semaphore | None
    ) -> BatchOutcome:
        try:
            if semaphore is None:
                outcome = await self._generate(item)
            else:
                async with semaphore:
                    outcome = await self._generate(item)
        except asyncio.CancelledError:
            if not self._cancel_requested:
                raise
            outcome = failed_outcome(ErrorKind.CANCELLED, "Batch cancelled")
        return self._finish(item, outcome)

    async def _generate(self, item: BatchItem) -> TaskOutcome:
        self.statuses[item.index] = BatchItemStatus.RUNNING
        task = GenerationTask(
            self.provider,
            self.gateway,
            item.prompt,
            subject_id=item.subject_id,
            aspect_ratio=item.aspect_ratio,
            sanitizer=self.sanitizer,
            clean=item.clean,
            settings=self.settings,
            signed_url_ttl_s=self.signed_url_ttl_s,
        )
        return await task.run()

    def _finish(self, item: BatchItem, outcome: TaskOutcome) -> BatchOutcome:
        self.statuses[item.index] = _STATUS_BY_OUTCOME[outcome.status]
        result = BatchOutcome(item=item, outcome=outcome)
        self._finished[item.index] = result
        if self.on_item_complete is not None:
            try:
                self.on_item_complete(result)
            except Exception:
                logger.exception(f"on_item_complete callback failed for item {item.index}")
        return result

    async def _promote_primaries(self, outcomes: list[BatchOutcome]) -> list[BatchOutcome]:
        """Apply the first-image-becomes-primary rule once per succeeded subject.

        Returns the outcomes with each image replaced by its stored version,
        so ``is_primary`` reflects the promotion. Callbacks already saw the
        save-time snapshot.
        """
        subjects = list(dict.fromkeys(o.item.subject_id for o in outcomes if o.outcome.ok))
        stored: dict[str, GeneratedImage] = {}
        for subject_id in subjects:
            try:
                await promote_first_image(self.gateway, subject_id)
                stored.update({img.id: img for img in await self.gateway.list_images(subject_id)})
            except Exception as e:
                logger.warning(f"Primary promotion failed for {subject_id}: {e}")

        refreshed: list[BatchOutcome] = []
        for o in outcomes:
            image = o.outcome.image
            current = stored.get(image.id) if image is not None else None
            if current is None or current == image:
                refreshed.append(o)
                continue
            outcome = o.outcome.model_copy(update={"image": current})
            refreshed.append(o.model_copy(update={"outcome": outcome}))
        return refreshed

"""Generation task: submit -> poll -> fetch -> persist for one prompt.

The task drives the provider and the persistence gateway but owns no
storage itself. Every failure ends in a terminal TaskOutcome; the only
exception that escapes ``run()`` is asyncio.CancelledError.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
import logging
import time

from shotgen.core.api.imaging.models import AspectRatio, JobState
from shotgen.core.api.imaging.protocols import ImageProvider
from shotgen.core.api.text.sanitizer import PromptSanitizer, clean_or_fallback
from shotgen.core.config.models import GenerationSettings
from shotgen.core.errors import (
    AssetExpiredError,
    ErrorKind,
    GenerationError,
    InvalidRequestError,
    ProviderFailedError,
    ProviderUnavailableError,
)
from shotgen.core.generation.models import (
    GenerationJob,
    JobPhase,
    TaskOutcome,
    TaskState,
    done_outcome,
    failed_outcome,
    timed_out_outcome,
)
from shotgen.core.persistence.protocols import PersistenceGateway

logger = logging.getLogger(__name__)

DEFAULT_SIGNED_URL_TTL_S = 600.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenerationTask:
    """Runs one prompt through the provider and stores the result.

    A task instance runs once. Progress is observable through ``state``,
    ``history``, ``job`` and ``attempts``; the result is only available as
    the outcome returned by ``run()``.

    Args:
        provider: Image provider (submit/poll/fetch_asset)
        gateway: Persistence gateway that stores the asset and image record
        prompt: Prompt text (trimmed before use)
        subject_id: Shot/character that receives the image
        aspect_ratio: Frame shape (validated before any network call)
        sanitizer: Optional prompt cleaner; failures fall back to the raw prompt
        clean: Whether to use the sanitizer for this task
        settings: Polling cadence and ceiling
        signed_url_ttl_s: Validity window of the provider's signed asset URL
        clock: UTC clock (tests)

    Example:
        >>> task = GenerationTask(provider, gateway, "A castle at sunset", subject_id="shot-1")
        >>> outcome = await task.run()
        >>> if outcome.ok:
        ...     print(outcome.image.asset_url)
    """

    def __init__(
        self,
        provider: ImageProvider,
        gateway: PersistenceGateway,
        prompt: str,
        *,
        subject_id: str,
        aspect_ratio: AspectRatio | str = AspectRatio.LANDSCAPE,
        sanitizer: PromptSanitizer | None = None,
        clean: bool = True,
        settings: GenerationSettings | None = None,
        signed_url_ttl_s: float = DEFAULT_SIGNED_URL_TTL_S,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.provider = provider
        self.gateway = gateway
        self.prompt = prompt
        self.subject_id = subject_id
        self.aspect_ratio = aspect_ratio
        self.sanitizer = sanitizer
        self.settings = settings or GenerationSettings()
        self.clean = clean and self.settings.clean_prompts
        self.signed_url_ttl_s = signed_url_ttl_s
        self._clock = clock

        self.state = TaskState.CREATED
        self.history: list[TaskState] = [TaskState.CREATED]
        self.job: GenerationJob | None = None
        self.attempts = 0
        self.prompt_used: str | None = None
        self._started = False

    def _extra(self) -> dict[str, object]:
        return {
            "subject_id": self.subject_id,
            "job_id": self.job.job_id if self.job else None,
            "attempt": self.attempts,
        }

    def _transition(self, state: TaskState) -> None:
        logger.debug(
            f"[{self.subject_id}] {self.state.value} -> {state.value}", extra=self._extra()
        )
        self.state = state
        self.history.append(state)

    async def run(self) -> TaskOutcome:
        """Run the task to a terminal outcome.

        Returns:
            Done with the saved image, Failed with kind and reason, or TimedOut

        Raises:
            RuntimeError: If the task was already run
            asyncio.CancelledError: If the awaiting coroutine is cancelled
        """
        if self._started:
            raise RuntimeError("GenerationTask.run() may only be called once")
        self._started = True
        start_time = time.perf_counter()

        try:
            outcome = await self._execute()
        except GenerationError as e:
            outcome = self._fail(e.kind, e.message)
        except Exception as e:
            logger.exception(f"[{self.subject_id}] Unexpected error in generation task")
            outcome = self._fail(ErrorKind.UNEXPECTED, f"{type(e).__name__}: {e}")

        outcome = outcome.model_copy(
            update={"duration_ms": (time.perf_counter() - start_time) * 1000}
        )
        self._log_outcome(outcome)
        return outcome

    async def _execute(self) -> TaskOutcome:
        # Submitting
        self._transition(TaskState.SUBMITTING)
        ratio = AspectRatio.parse(self.aspect_ratio)
        prompt = await self._prepare_prompt()
        handle = await self.provider.submit(prompt, ratio)
        job = self.job = GenerationJob(handle=handle)

        # Polling
        self._transition(TaskState.POLLING)
        asset_url = await self._poll_until_ready(job)
        if asset_url is None:
            job.phase = JobPhase.TIMED_OUT
            self._transition(TaskState.TIMED_OUT)
            return timed_out_outcome(
                self.attempts, job_id=job.job_id, prompt_used=self.prompt_used
            )

        # Fetching
        self._transition(TaskState.FETCHING)
        self._check_signing_window(job)
        payload = await self.provider.fetch_asset(asset_url)

        # Persisting
        self._transition(TaskState.PERSISTING)
        stored_url = await self.gateway.store_asset(
            self.subject_id, payload.data, payload.content_type
        )
        image = await self.gateway.save_image(self.subject_id, stored_url, prompt)

        self._transition(TaskState.DONE)
        return done_outcome(
            image,
            job_id=job.job_id,
            poll_attempts=self.attempts,
            prompt_used=prompt,
        )

    async def _prepare_prompt(self) -> str:
        text = (self.prompt or "").strip()
        if not text:
            raise InvalidRequestError("Prompt is required")
        if self.clean and self.sanitizer is not None:
            text = await clean_or_fallback(self.sanitizer, text)
        self.prompt_used = text
        return text

    async def _poll_until_ready(self, job: GenerationJob) -> str | None:
        """Poll until Ready, returning the signed asset URL.

        Returns None when the attempt ceiling is reached without a terminal
        status. The first poll is immediate; later ones wait poll_interval_s.

        Raises:
            ProviderFailedError: If the provider reports the job as failed
            ProviderUnavailableError: If the final permitted poll errors
        """
        max_attempts = self.settings.max_poll_attempts

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                await asyncio.sleep(self.settings.poll_interval_s)
            self.attempts = attempt

            try:
                status = await self.provider.poll(job.handle)
            except ProviderUnavailableError as e:
                if attempt == max_attempts:
                    raise
                logger.debug(
                    f"[{self.subject_id}] Poll attempt {attempt} failed: {e}", extra=self._extra()
                )
                continue

            if status.state == JobState.READY and status.asset_url:
                job.phase = JobPhase.READY
                job.asset_url = status.asset_url
                job.ready_at = self._clock()
                return status.asset_url

            if status.state == JobState.FAILED:
                job.phase = JobPhase.FAILED
                raise ProviderFailedError(status.reason or "Generation task failed")

            logger.debug(
                f"[{self.subject_id}] Job {job.job_id} still {status.raw_status or 'pending'}",
                extra=self._extra(),
            )

        return None

    def _check_signing_window(self, job: GenerationJob) -> None:
        if job.ready_at is None:
            return
        elapsed = (self._clock() - job.ready_at).total_seconds()
        if elapsed > self.signed_url_ttl_s:
            raise AssetExpiredError(
                f"Signed asset URL expired ({elapsed:.0f}s since ready, "
                f"window {self.signed_url_ttl_s:.0f}s)"
            )

    def _fail(self, kind: ErrorKind, reason: str) -> TaskOutcome:
        if self.job is not None and self.job.phase == JobPhase.PENDING:
            self.job.phase = JobPhase.FAILED
        self._transition(TaskState.FAILED)
        return failed_outcome(
            kind,
            reason,
            job_id=self.job.job_id if self.job else None,
            poll_attempts=self.attempts,
            prompt_used=self.prompt_used,
        )

    def _log_outcome(self, outcome: TaskOutcome) -> None:
        extra = self._extra()
        if outcome.ok:
            logger.info(
                f"[{self.subject_id}] Generated image in {outcome.duration_ms:.0f}ms "
                f"after {self.attempts} poll(s)",
                extra=extra,
            )
        elif outcome.error_kind == ErrorKind.TIMED_OUT:
            logger.warning(
                f"[{self.subject_id}] Timed out after {self.attempts} poll(s)", extra=extra
            )
        else:
            logger.warning(
                f"[{self.subject_id}] Generation failed "
                f"({outcome.error_kind.value if outcome.error_kind else 'unknown'}): "
                f"{outcome.reason}",
                extra=extra,
            )

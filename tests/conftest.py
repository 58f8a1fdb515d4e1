"""Shared pytest fixtures for shotgen tests.

The fakes here stand in for the remote provider and the prompt cleaner so
orchestration can be tested without HTTP.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Iterable

import pytest

from shotgen.core.api.imaging.models import AspectRatio, AssetPayload, JobHandle, JobStatus
from shotgen.core.config.models import GenerationSettings
from shotgen.core.errors import InvalidRequestError, ProviderUnavailableError
from shotgen.core.persistence import GeneratedImage, InMemoryPersistenceGateway

SAMPLE_URL = "https://delivery.example/results/sample.png"

PollStep = JobStatus | Exception


def pending() -> JobStatus:
    return JobStatus.pending()


def ready(url: str = SAMPLE_URL) -> JobStatus:
    return JobStatus.ready(url)


def failed(reason: str = "Generation failed") -> JobStatus:
    return JobStatus.failed(reason, raw_status="Error")


# ============================================================================
# Fakes
# ============================================================================


class FakeProvider:
    """Scriptable in-process ImageProvider.

    ``scripts`` maps a prompt to the poll steps its job goes through; the
    last step repeats forever. Prompts without a script are Ready on the
    first poll.
    """

    def __init__(
        self,
        scripts: dict[str, Iterable[PollStep]] | None = None,
        *,
        submit_errors: dict[str, Exception] | None = None,
        fetch_errors: dict[str, Exception] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.scripts = {k: list(v) for k, v in (scripts or {}).items()}
        self.submit_errors = submit_errors or {}
        self.fetch_errors = fetch_errors or {}
        self.delay = delay
        self.gate: asyncio.Event | None = None

        self.submitted: list[tuple[str, AspectRatio]] = []
        self.poll_calls: dict[str, int] = defaultdict(int)
        self.fetched: list[str] = []
        self.active = 0
        self.max_active = 0
        self._queues: dict[str, list[PollStep]] = {}

    async def submit(self, prompt: str, aspect_ratio: AspectRatio | str) -> JobHandle:
        ratio = AspectRatio.parse(aspect_ratio)
        self.submitted.append((prompt, ratio))
        job_id = f"job-{len(self.submitted)}"
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        if prompt in self.submit_errors:
            raise self.submit_errors[prompt]
        steps = self.scripts.get(prompt) or [ready(f"https://delivery.example/{job_id}.png")]
        self._queues[job_id] = list(steps)
        return JobHandle(job_id=job_id, polling_url=f"https://api.example/v1/get_result?id={job_id}")

    async def poll(self, handle: JobHandle) -> JobStatus:
        if self.gate is not None:
            await self.gate.wait()
        self.poll_calls[handle.job_id] += 1
        queue = self._queues[handle.job_id]
        step = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(step, Exception):
            raise step
        return step

    async def fetch_asset(self, asset_url: str) -> AssetPayload:
        self.fetched.append(asset_url)
        if asset_url in self.fetch_errors:
            raise self.fetch_errors[asset_url]
        return AssetPayload(data=f"image:{asset_url}".encode(), content_type="image/png")

    @property
    def total_polls(self) -> int:
        return sum(self.poll_calls.values())


class FakeSanitizer:
    """Prompt cleaner that upper-cases text, or fails with ``error``."""

    def __init__(self, error: Exception | None = None, result: str | None = None) -> None:
        self.error = error
        self.result = result
        self.calls: list[str] = []

    async def clean(self, script: str) -> str:
        self.calls.append(script)
        if self.error is not None:
            raise self.error
        return self.result if self.result is not None else script.upper()


class NoAutoPrimaryGateway(InMemoryPersistenceGateway):
    """Gateway whose records arrive without a primary, like a bulk import."""

    async def save_image(self, subject_id, asset_url, prompt):
        image = GeneratedImage(subject_id=subject_id, asset_url=asset_url, prompt=prompt)
        self._images[image.id] = image
        self._by_subject.setdefault(subject_id, []).append(image.id)
        return image


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def gateway() -> InMemoryPersistenceGateway:
    return InMemoryPersistenceGateway()


@pytest.fixture
def fast_settings() -> GenerationSettings:
    """No sleeping between polls, small ceiling."""
    return GenerationSettings(poll_interval_s=0.0, max_poll_attempts=5)


@pytest.fixture
def unavailable() -> ProviderUnavailableError:
    return ProviderUnavailableError("503 from provider")


@pytest.fixture
def invalid() -> InvalidRequestError:
    return InvalidRequestError("400 from provider")

from __future__ import annotations

import random

from pydantic import BaseModel, Field, model_validator


class RetryPolicy(BaseModel):
    """When and how long AsyncApiClient waits before repeating a request.

    Retries stay inside one HTTP call. Only idempotent methods qualify, so
    image submissions (POST) always go out exactly once.

    Args:
        max_attempts: Attempts per call, the first one included
        base_delay_s: Backoff delay before the first retry
        max_delay_s: Ceiling for the doubled delay
        jitter: Random spread as a fraction of the delay
        retry_on_status: Response codes worth repeating
        retry_methods: Methods that may be repeated
    """

    model_config = {"frozen": True}

    max_attempts: int = Field(default=3, ge=1)
    base_delay_s: float = Field(default=0.25, ge=0.0)
    max_delay_s: float = Field(default=5.0, ge=0.0)
    jitter: float = Field(default=0.15, ge=0.0, le=1.0)
    retry_on_status: frozenset[int] = frozenset({429, 500, 502, 503, 504})
    retry_methods: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS"})

    @model_validator(mode="after")
    def _check_delays(self) -> RetryPolicy:
        if self.max_delay_s < self.base_delay_s:
            raise ValueError("max_delay_s must be >= base_delay_s")
        return self

    @classmethod
    def no_retry(cls) -> RetryPolicy:
        """A single attempt with no waiting."""
        return cls(max_attempts=1, base_delay_s=0.0, max_delay_s=0.0, jitter=0.0)

    def allows_method(self, method: str) -> bool:
        return method.upper() in self.retry_methods

    def compute_delay(self, attempt: int) -> float:
        """Backoff before retry number ``attempt`` (1 = first retry)."""
        delay = min(self.max_delay_s, self.base_delay_s * 2 ** (attempt - 1))
        if self.jitter:
            delay += random.uniform(-1.0, 1.0) * delay * self.jitter
        return max(0.0, delay)

    def delay_for(self, attempt: int, retry_after: str | None = None) -> float:
        """Wait before the next attempt, preferring a server Retry-After hint."""
        hinted = parse_retry_after_seconds(retry_after)
        return hinted if hinted is not None else self.compute_delay(attempt)


def parse_retry_after_seconds(value: str | None) -> float | None:
    """Seconds from a numeric Retry-After header; None for dates or junk."""
    try:
        seconds = float((value or "").strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None

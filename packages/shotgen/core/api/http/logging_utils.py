"""Debug logging for HTTP exchanges.

Credentials (the provider's ``x-key``, Bearer tokens) are masked before
headers reach a log record.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
import time

logger = logging.getLogger("shotgen.core.api.http")

REDACTED = "***REDACTED***"


def redact_headers(headers: Mapping[str, str], redact: tuple[str, ...]) -> dict[str, str]:
    masked = {name.lower() for name in redact}
    return {k: REDACTED if k.lower() in masked else v for k, v in headers.items()}


@dataclass(frozen=True)
class Exchange:
    """One attempt of one request, as it appears in the logs."""

    method: str
    url: str
    attempt: int
    request_id: str | None = None
    started: float = 0.0

    def fields(self) -> dict[str, object]:
        return {
            "method": self.method,
            "url": self.url,
            "attempt": self.attempt,
            "request_id": self.request_id,
        }


def log_request(
    method: str,
    url: str,
    *,
    attempt: int,
    request_id: str | None,
    headers: Mapping[str, str],
    redact: tuple[str, ...],
) -> Exchange:
    """Log an outgoing attempt and start its clock."""
    exchange = Exchange(method, url, attempt, request_id, time.perf_counter())
    logger.debug(
        "HTTP request", extra={**exchange.fields(), "headers": redact_headers(headers, redact)}
    )
    return exchange


def log_response(exchange: Exchange, status_code: int) -> None:
    elapsed_ms = int((time.perf_counter() - exchange.started) * 1000)
    logger.debug(
        "HTTP response",
        extra={**exchange.fields(), "status_code": status_code, "elapsed_ms": elapsed_ms},
    )

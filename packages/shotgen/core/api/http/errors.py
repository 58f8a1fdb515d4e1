from __future__ import annotations

from pydantic import BaseModel, Field


class ApiErrorData(BaseModel):
    """What went wrong on one HTTP exchange.

    Args:
        message: Human-readable error description
        method: HTTP method
        url: Request URL
        status_code: HTTP status code (None when no response arrived)
        request_id: Tracing id sent or echoed by the server
        response_body_snippet: Truncated response body, used to surface the
            remote service's own error message
        cause: Underlying transport or decoding exception
    """

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    message: str
    method: str
    url: str
    status_code: int | None = None
    request_id: str | None = None
    response_body_snippet: str | None = None
    cause: BaseException | None = Field(default=None, repr=False)


class ApiError(Exception):
    """Base exception for HTTP failures raised by AsyncApiClient.

    Remote-service clients translate these into the generation error
    taxonomy; ``is_transient`` is what decides between "provider
    unavailable" and "invalid request".
    """

    transient: bool = False

    def __init__(self, data: ApiErrorData) -> None:
        self.data = data
        super().__init__(str(self))

    @property
    def message(self) -> str:
        return self.data.message

    @property
    def status_code(self) -> int | None:
        return self.data.status_code

    @property
    def response_body_snippet(self) -> str | None:
        return self.data.response_body_snippet

    @property
    def is_transient(self) -> bool:
        """True when repeating the same request later could succeed."""
        return self.transient

    def __str__(self) -> str:
        parts = [self.data.message, f"{self.data.method} {self.data.url}"]
        if self.data.status_code is not None:
            parts.append(f"status={self.data.status_code}")
        if self.data.request_id:
            parts.append(f"request_id={self.data.request_id}")
        return " | ".join(parts)


class NetworkError(ApiError):
    """Connection could not be made or was dropped."""

    transient = True


class TimeoutError(ApiError):
    """Request timed out."""

    transient = True


class DecodeError(ApiError):
    """Response body was not the JSON shape the caller expected."""


class RateLimitError(ApiError):
    """HTTP 429."""

    transient = True


class AuthError(ApiError):
    """HTTP 401/403."""


class ClientError(ApiError):
    """Other HTTP 4xx."""


class ServerError(ApiError):
    """HTTP 5xx."""

    transient = True


class UnexpectedStatusError(ApiError):
    """Non-2xx status outside the categories above."""

"""Error taxonomy for image generation.

Every failure a generation can end with maps to one ErrorKind. The kind,
not the exception class, is what travels inside task outcomes, so batch
callers can report failures without catching anything.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Why a generation did not produce an image."""

    INVALID_REQUEST = "invalid_request"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    PROVIDER_FAILED = "provider_failed"
    TIMED_OUT = "timed_out"
    ASSET_EXPIRED = "asset_expired"
    PERSISTENCE_ERROR = "persistence_error"
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected"

    @property
    def retryable(self) -> bool:
        """Whether resubmitting the same prompt later could succeed."""
        return self in (ErrorKind.PROVIDER_UNAVAILABLE, ErrorKind.TIMED_OUT)


class GenerationError(Exception):
    """Base class for failures raised by collaborators of a generation."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class InvalidRequestError(GenerationError):
    """Bad input or malformed provider handshake. Never retried."""

    kind = ErrorKind.INVALID_REQUEST


class ProviderUnavailableError(GenerationError):
    """Network failure, throttling or 5xx from a remote service."""

    kind = ErrorKind.PROVIDER_UNAVAILABLE


class ProviderFailedError(GenerationError):
    """The provider reported the job itself as failed."""

    kind = ErrorKind.PROVIDER_FAILED


class AssetExpiredError(GenerationError):
    """The signed asset URL could no longer be fetched."""

    kind = ErrorKind.ASSET_EXPIRED


class PersistenceError(GenerationError):
    """Storing the asset or its image record failed."""

    kind = ErrorKind.PERSISTENCE_ERROR

"""HTTPX wrapper shared by every remote collaborator.

Exposes a small surface:
- AsyncApiClient: high-level async client
- HttpClientConfig / RetryPolicy: configuration
- ApiKeyAuth: static header authentication
- Exceptions: ApiError and subclasses
"""

from shotgen.core.api.http.auth import ApiKeyAuth
from shotgen.core.api.http.client import AsyncApiClient, categorize_status
from shotgen.core.api.http.config import HttpClientConfig
from shotgen.core.api.http.errors import (
    ApiError,
    ApiErrorData,
    AuthError,
    ClientError,
    DecodeError,
    NetworkError,
    RateLimitError,
    ServerError,
    TimeoutError,
    UnexpectedStatusError,
)
from shotgen.core.api.http.retry import RetryPolicy

__all__ = [
    "AsyncApiClient",
    "HttpClientConfig",
    "RetryPolicy",
    "ApiKeyAuth",
    "categorize_status",
    "ApiError",
    "ApiErrorData",
    "NetworkError",
    "TimeoutError",
    "DecodeError",
    "RateLimitError",
    "AuthError",
    "ClientError",
    "ServerError",
    "UnexpectedStatusError",
]

"""Async HTTP client wrapper built on HTTPX.

Provides:
- Retries with exponential backoff for idempotent requests
- Structured error taxonomy (see errors.py)
- Request/response logging with header redaction
- Pydantic response parsing
"""

from __future__ import annotations

import asyncio
from typing import Any, TypeVar
import uuid

import httpx
from pydantic import BaseModel

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
from shotgen.core.api.http.logging_utils import log_request, log_response
from shotgen.core.api.http.retry import RetryPolicy
from shotgen.core.api.http.utils import get_request_id, join_url, safe_snippet

TModel = TypeVar("TModel", bound=BaseModel)


def categorize_status(status_code: int) -> type[ApiError]:
    """Map an HTTP status code to the matching error class."""
    if status_code in (401, 403):
        return AuthError
    if status_code == 429:
        return RateLimitError
    if 400 <= status_code < 500:
        return ClientError
    if 500 <= status_code < 600:
        return ServerError
    return UnexpectedStatusError


class AsyncApiClient:
    """Asynchronous HTTP API client.

    Args:
        config: Client configuration
        auth: Optional authentication handler (e.g. ApiKeyAuth)
        retry_policy: Retry policy (defaults to safe retries on GET/HEAD/OPTIONS)
        transport: Optional custom transport (``httpx.MockTransport`` in tests)

    Example:
        >>> config = HttpClientConfig(base_url="https://api.bfl.ai")
        >>> async with AsyncApiClient(config) as client:
        ...     resp = await client.post("/v1/flux-dev", json_body={"prompt": "castle"})
        ...     data = client.json(resp)
    """

    def __init__(
        self,
        config: HttpClientConfig,
        *,
        auth: httpx.Auth | None = None,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy()
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={"User-Agent": config.user_agent, **config.headers},
            timeout=config.timeout,
            follow_redirects=config.follow_redirects,
            auth=auth,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AsyncApiClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a request, retrying per the retry policy.

        Args:
            method: HTTP method
            path: Path relative to base_url, or an absolute URL
            json_body: JSON-serializable request body
            headers: Extra headers for this request

        Returns:
            A response with status < 400

        Raises:
            ApiError: On request failure (subclass identifies the category)
        """
        method = method.upper()
        url = join_url(str(self._client.base_url), path)
        request_headers = {**self._client.headers, **(headers or {})}
        request_id = request_headers.setdefault("X-Request-Id", f"req_{uuid.uuid4().hex[:12]}")
        retryable_method = self.retry_policy.allows_method(method)

        attempt = 0
        while True:
            attempt += 1
            can_retry = retryable_method and attempt < self.retry_policy.max_attempts
            exchange = log_request(
                method,
                url,
                attempt=attempt,
                request_id=request_id,
                headers=request_headers,
                redact=self.config.redact_headers,
            )

            try:
                resp = await self._client.request(
                    method, url, headers=request_headers, json=json_body
                )
            except httpx.RequestError as e:
                # TimeoutException is a RequestError subclass
                if not can_retry:
                    exc_type = TimeoutError if isinstance(e, httpx.TimeoutException) else NetworkError
                    raise exc_type(
                        ApiErrorData(
                            message=f"{type(e).__name__} while sending request",
                            method=method,
                            url=url,
                            request_id=request_id,
                            cause=e,
                        )
                    ) from e
                await asyncio.sleep(self.retry_policy.compute_delay(attempt))
                continue

            log_response(exchange, resp.status_code)
            if resp.status_code < 400:
                return resp

            error = self._status_error(resp, request_id)
            if not can_retry or resp.status_code not in self.retry_policy.retry_on_status:
                raise error

            await asyncio.sleep(
                self.retry_policy.delay_for(attempt, resp.headers.get("Retry-After"))
            )

    def json(self, response: httpx.Response) -> Any:
        """Decode a JSON response body.

        Returns:
            Decoded JSON data, or None for empty/204 responses

        Raises:
            DecodeError: If response is not JSON or parsing fails
        """
        if response.status_code == 204 or not response.content:
            return None
        ctype = response.headers.get("content-type", "")
        if "application/json" not in ctype and "+json" not in ctype:
            raise self._decode_error(response, "Response is not JSON (content-type mismatch)")
        try:
            return response.json()
        except ValueError as e:
            raise self._decode_error(response, "Failed to parse JSON response", cause=e) from e

    def parse_pydantic(self, response: httpx.Response, model: type[TModel]) -> TModel:
        """Parse and validate a JSON response with a Pydantic model.

        Raises:
            DecodeError: If JSON parsing or validation fails
        """
        data = self.json(response)
        try:
            return model.model_validate(data)
        except ValueError as e:
            raise self._decode_error(
                response, f"Response does not match {model.__name__}", cause=e
            ) from e

    def _error_data(
        self,
        response: httpx.Response,
        message: str,
        request_id: str | None,
        cause: BaseException | None = None,
    ) -> ApiErrorData:
        return ApiErrorData(
            message=message,
            method=response.request.method,
            url=str(response.request.url),
            status_code=response.status_code,
            request_id=get_request_id(response.headers) or request_id,
            response_body_snippet=safe_snippet(response.content or b"", self.config.max_error_body),
            cause=cause,
        )

    def _status_error(self, response: httpx.Response, request_id: str) -> ApiError:
        exc_type = categorize_status(response.status_code)
        return exc_type(self._error_data(response, "HTTP error response", request_id))

    def _decode_error(
        self, response: httpx.Response, message: str, cause: BaseException | None = None
    ) -> ApiError:
        return DecodeError(
            self._error_data(response, message, response.request.headers.get("X-Request-Id"), cause)
        )

from __future__ import annotations

import httpx
from pydantic import BaseModel, Field, field_validator

# Header names whose values never reach the logs.
SENSITIVE_HEADERS = (
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "x-key",
)


class HttpClientConfig(BaseModel):
    """Connection settings for one AsyncApiClient.

    Args:
        base_url: Root for relative paths; absolute URLs (poll handles,
            signed asset URLs) are sent as-is
        timeout: HTTPX timeout applied to every request
        follow_redirects: Signed asset URLs may redirect to a CDN
        headers: Default headers sent with every request
        user_agent: User-Agent header value
        redact_headers: Header names masked in debug logs
        max_error_body: Max response bytes kept on an ApiError
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    base_url: str
    timeout: httpx.Timeout = Field(default_factory=lambda: httpx.Timeout(30.0, connect=5.0))
    follow_redirects: bool = True
    headers: dict[str, str] = Field(default_factory=dict)
    user_agent: str = "shotgen/0.1"
    redact_headers: tuple[str, ...] = SENSITIVE_HEADERS
    max_error_body: int = Field(default=4096, ge=0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

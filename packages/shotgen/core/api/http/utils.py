"""Utility functions for HTTP client operations."""

from __future__ import annotations

from collections.abc import Mapping
from urllib.parse import urljoin, urlsplit


def join_url(base_url: str, path: str) -> str:
    """Join base URL with a path, leaving absolute URLs untouched.

    Provider poll handles and signed asset URLs are absolute, so they must
    not be re-rooted under the client's base URL.

    Example:
        >>> join_url("https://api.example.com", "/v1/jobs")
        'https://api.example.com/v1/jobs'
        >>> join_url("https://api.example.com", "https://cdn.example.com/x.png")
        'https://cdn.example.com/x.png'
    """
    if is_absolute_url(path):
        return path
    base = base_url if base_url.endswith("/") else base_url + "/"
    return urljoin(base, path.lstrip("/"))


def is_absolute_url(value: str) -> bool:
    """True for ``http(s)://host/...`` style URLs."""
    parts = urlsplit(value)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def safe_snippet(content: bytes, limit: int) -> str:
    """Decode at most ``limit`` bytes of a response body for error messages."""
    if not content:
        return ""
    return content[:limit].decode("utf-8", errors="replace")


def get_request_id(headers: Mapping[str, str]) -> str | None:
    """Extract request ID from common tracing headers."""
    for key in ("x-request-id", "x-correlation-id", "request-id", "trace-id"):
        for hk, hv in headers.items():
            if hk.lower() == key:
                return hv
    return None

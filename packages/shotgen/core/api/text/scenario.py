"""Scenario analysis client.

Sends a free-text scenario to the analysis service and validates the
returned scenes / shots / cast breakdown.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx
from pydantic import ValidationError

from shotgen.core.api.http import ApiError
from shotgen.core.api.text.models import ScenarioAnalysis, ScenarioRequest
from shotgen.core.api.text.sanitizer import build_text_client
from shotgen.core.config.models import TextServiceConfig
from shotgen.core.errors import InvalidRequestError, ProviderUnavailableError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


class ScenarioFormatError(InvalidRequestError):
    """The analysis did not have the expected scenes/shots/characters shape."""


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence (``` or ```json).

    Example:
        >>> strip_code_fences('```json\\n{"scenes": []}\\n```')
        '{"scenes": []}'
    """
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    return _FENCE_RE.sub("", stripped)


def parse_analysis(raw: Any) -> ScenarioAnalysis:
    """Validate a raw analysis payload (dict, or JSON text possibly fenced).

    Raises:
        ScenarioFormatError: If the payload is not valid JSON or is missing
            scenes, scene names/shots, shot scripts or character names
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(strip_code_fences(raw))
        except ValueError as e:
            raise ScenarioFormatError(f"Analysis is not valid JSON: {e}", cause=e) from e
    if not isinstance(raw, dict):
        raise ScenarioFormatError("Invalid response format: analysis must be an object")
    if not isinstance(raw.get("scenes"), list):
        raise ScenarioFormatError("Invalid response format: scenes array is missing")
    if raw.get("characters") is None:
        raw = {**raw, "characters": []}
    try:
        return ScenarioAnalysis.model_validate(raw)
    except ValidationError as e:
        raise ScenarioFormatError(f"Invalid response format: {e.error_count()} problem(s)", cause=e) from e


class ScenarioAnalyzerClient:
    """HTTP client for the scenario endpoint (``{scenario}`` -> ``{analysis}``)."""

    def __init__(
        self, config: TextServiceConfig, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> None:
        self.config = config
        self._api = build_text_client(config, transport)

    async def aclose(self) -> None:
        await self._api.aclose()

    async def __aenter__(self) -> ScenarioAnalyzerClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def analyze(self, scenario: str) -> ScenarioAnalysis:
        """Break a scenario into scenes, shots and characters.

        Raises:
            InvalidRequestError: Empty scenario or 4xx
            ScenarioFormatError: Malformed analysis
            ProviderUnavailableError: Network failure or 5xx
        """
        if not scenario or not scenario.strip():
            raise InvalidRequestError("Scenario text is required")
        try:
            resp = await self._api.post(
                self.config.scenario_path,
                json_body=ScenarioRequest(scenario=scenario).model_dump(),
            )
            body = self._api.json(resp)
        except ApiError as e:
            if e.is_transient:
                raise ProviderUnavailableError(f"Failed to process scenario: {e}", cause=e) from e
            raise InvalidRequestError(f"Failed to process scenario: {e}", cause=e) from e

        if not isinstance(body, dict) or "analysis" not in body:
            raise ScenarioFormatError("Invalid response format: analysis is missing")
        analysis = parse_analysis(body["analysis"])
        logger.info(
            f"Scenario analysed: {len(analysis.scenes)} scenes, "
            f"{analysis.shot_count} shots, {len(analysis.characters)} characters"
        )
        return analysis

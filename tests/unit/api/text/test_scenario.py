"""Tests for scenario analysis parsing and the analyzer client."""

from __future__ import annotations

import json

import httpx
import pytest

from shotgen.core.api.text.scenario import (
    ScenarioAnalyzerClient,
    ScenarioFormatError,
    parse_analysis,
    strip_code_fences,
)
from shotgen.core.config.models import TextServiceConfig
from shotgen.core.errors import InvalidRequestError, ProviderUnavailableError

ANALYSIS = {
    "scenes": [
        {"name": "Harbor", "shots": [{"script": "Boats at dawn"}, {"script": "Mara on deck"}]},
        {"name": "Storm", "shots": [{"script": "Waves crash"}]},
    ],
    "characters": [{"name": "Mara", "description": "a tall sailor", "clothes": "oilskin coat"}],
}


def _client(handler) -> ScenarioAnalyzerClient:
    config = TextServiceConfig(base_url="https://text.example")
    return ScenarioAnalyzerClient(config, transport=httpx.MockTransport(handler))


def _json(status: int, body: object) -> httpx.Response:
    return httpx.Response(status, json=body, headers={"content-type": "application/json"})


class TestParseAnalysis:
    def test_dict_payload(self) -> None:
        analysis = parse_analysis(ANALYSIS)
        assert [s.name for s in analysis.scenes] == ["Harbor", "Storm"]
        assert analysis.shot_count == 3
        assert analysis.characters[0].clothes == "oilskin coat"

    @pytest.mark.parametrize(
        "text",
        [
            json.dumps(ANALYSIS),
            "```json\n" + json.dumps(ANALYSIS) + "\n```",
            "```\n" + json.dumps(ANALYSIS) + "\n```",
        ],
    )
    def test_json_text_with_or_without_fences(self, text: str) -> None:
        assert parse_analysis(text).shot_count == 3

    def test_characters_default_to_empty(self) -> None:
        analysis = parse_analysis({"scenes": ANALYSIS["scenes"], "characters": None})
        assert analysis.characters == []

    def test_shot_subjects_in_scene_order(self) -> None:
        subjects = parse_analysis(ANALYSIS).shot_subjects()
        assert [sid for sid, _ in subjects] == [
            "scene-1/shot-1",
            "scene-1/shot-2",
            "scene-2/shot-1",
        ]
        assert subjects[1][1].script == "Mara on deck"

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"scenes": "nope"},
            {"scenes": [{"shots": [{"script": "x"}]}]},
            {"scenes": [{"name": "A"}]},
            {"scenes": [{"name": "A", "shots": [{}]}]},
            {"scenes": [{"name": "A", "shots": [{"script": ""}]}]},
            {"scenes": [], "characters": [{"description": "nameless"}]},
            "not json at all",
            ["a", "list"],
        ],
    )
    def test_structural_violations(self, payload: object) -> None:
        with pytest.raises(ScenarioFormatError):
            parse_analysis(payload)

    def test_format_error_is_invalid_request(self) -> None:
        assert issubclass(ScenarioFormatError, InvalidRequestError)

    def test_strip_code_fences_leaves_plain_text(self) -> None:
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'


class TestAnalyzerClient:
    async def test_analyze_posts_scenario(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return _json(200, {"analysis": ANALYSIS})

        async with _client(handler) as client:
            analysis = await client.analyze("A storm hits the harbor.")

        assert analysis.shot_count == 3
        assert captured[0].url.path == "/api/process-scenario"
        assert json.loads(captured[0].content) == {"scenario": "A storm hits the harbor."}

    async def test_analysis_as_fenced_string(self) -> None:
        fenced = "```json\n" + json.dumps(ANALYSIS) + "\n```"
        async with _client(lambda r: _json(200, {"analysis": fenced})) as client:
            analysis = await client.analyze("story")
        assert len(analysis.scenes) == 2

    async def test_missing_analysis_key(self) -> None:
        async with _client(lambda r: _json(200, {"result": {}})) as client:
            with pytest.raises(ScenarioFormatError):
                await client.analyze("story")

    async def test_server_error(self) -> None:
        async with _client(lambda r: httpx.Response(503)) as client:
            with pytest.raises(ProviderUnavailableError):
                await client.analyze("story")

    async def test_blank_scenario(self) -> None:
        async with _client(lambda r: _json(200, {})) as client:
            with pytest.raises(InvalidRequestError):
                await client.analyze("  ")

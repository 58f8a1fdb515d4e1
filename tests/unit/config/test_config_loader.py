"""Tests for the config loader (JSON/YAML files plus environment secrets)."""

import json
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

import shotgen.core.config.loader as config_loader
from shotgen.core.config.models import AppConfig


@pytest.fixture
def sample_config_data():
    """Sample configuration data for testing."""
    return {
        "provider": {"base_url": "https://api.example/", "api_key": "file-key"},
        "text_service": {"base_url": "https://text.example"},
        "generation": {"poll_interval_s": 0.25, "max_poll_attempts": 10, "max_concurrency": 4},
        "storage": {"assets_dir": "out/assets"},
        "logging": {"level": "debug", "structured": True},
    }


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("BFL_API_KEY", "SHOTGEN_TEXT_API_KEY", "SHOTGEN_TEXT_BASE_URL"):
        monkeypatch.delenv(name, raising=False)


def test_detect_format():
    assert config_loader.detect_format("config.json") == "json"
    assert config_loader.detect_format(Path("config.yml")) == "yaml"
    assert config_loader.detect_format("CONFIG.YAML") == "yaml"
    with pytest.raises(ValueError) as exc_info:
        config_loader.detect_format("config.txt")
    assert "Unsupported config format" in str(exc_info.value)


def test_load_config_json(tmp_path, sample_config_data):
    config_file = tmp_path / "shotgen.json"
    config_file.write_text(json.dumps(sample_config_data))

    assert config_loader.load_config(config_file) == sample_config_data


def test_load_config_yaml(tmp_path, sample_config_data):
    config_file = tmp_path / "shotgen.yaml"
    config_file.write_text(yaml.dump(sample_config_data))

    assert config_loader.load_config(config_file) == sample_config_data


def test_load_config_empty_yaml(tmp_path):
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")
    assert config_loader.load_config(config_file) == {}


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        config_loader.load_config(tmp_path / "missing.yaml")


@pytest.mark.parametrize(
    ("name", "content"),
    [
        ("bad.json", "{not json"),
        ("bad.yaml", "key: [unclosed"),
        ("list.yaml", "- a\n- b\n"),
        ("list.json", "[1, 2]"),
    ],
)
def test_load_config_invalid_content(tmp_path, name, content):
    config_file = tmp_path / name
    config_file.write_text(content)
    with pytest.raises(ValueError):
        config_loader.load_config(config_file)


def test_load_app_config_from_file(tmp_path, sample_config_data):
    config_file = tmp_path / "shotgen.yaml"
    config_file.write_text(yaml.dump(sample_config_data))

    config = config_loader.load_app_config(config_file)

    assert isinstance(config, AppConfig)
    assert config.provider.base_url == "https://api.example"
    assert config.provider.api_key == "file-key"
    assert config.generation.max_poll_attempts == 10
    assert config.generation.max_concurrency == 4
    assert config.text_service.enabled
    assert config.logging.level == "DEBUG"


def test_load_app_config_missing_file_uses_defaults(tmp_path):
    config = config_loader.load_app_config(tmp_path / "nope.yaml")

    assert config.generation.poll_interval_s == 0.5
    assert config.generation.max_poll_attempts == 60
    assert config.generation.max_concurrency is None
    assert config.provider.signed_url_ttl_s == 600.0
    assert not config.text_service.enabled


def test_env_vars_fill_missing_secrets(tmp_path, monkeypatch):
    monkeypatch.setenv("BFL_API_KEY", "env-key")
    monkeypatch.setenv("SHOTGEN_TEXT_API_KEY", "text-key")
    monkeypatch.setenv("SHOTGEN_TEXT_BASE_URL", "https://text.env/")

    config = config_loader.load_app_config(tmp_path / "nope.yaml")

    assert config.provider.api_key == "env-key"
    assert config.text_service.api_key == "text-key"
    assert config.text_service.base_url == "https://text.env"


def test_file_secrets_win_over_env(tmp_path, monkeypatch, sample_config_data):
    monkeypatch.setenv("BFL_API_KEY", "env-key")
    config_file = tmp_path / "shotgen.json"
    config_file.write_text(json.dumps(sample_config_data))

    assert config_loader.load_app_config(config_file).provider.api_key == "file-key"


def test_invalid_env_base_url_is_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("SHOTGEN_TEXT_BASE_URL", "ftp://text.env")
    with pytest.raises(ValidationError):
        config_loader.load_app_config(tmp_path / "nope.yaml")


@pytest.mark.parametrize(
    "generation",
    [
        {"poll_interval_s": -1},
        {"max_poll_attempts": 0},
        {"max_concurrency": 0},
    ],
)
def test_invalid_generation_settings(tmp_path, generation):
    config_file = tmp_path / "shotgen.json"
    config_file.write_text(json.dumps({"generation": generation}))
    with pytest.raises(ValidationError):
        config_loader.load_app_config(config_file)


def test_unknown_keys_are_ignored(tmp_path):
    config_file = tmp_path / "shotgen.json"
    config_file.write_text(json.dumps({"future_section": {"x": 1}, "provider": {"extra": True}}))
    config = config_loader.load_app_config(config_file)
    assert config.provider.base_url == "https://api.bfl.ai"

"""Configuration loading utilities with JSON and YAML support."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from shotgen.core.config.models import AppConfig
from shotgen.core.utils.json import read_json
from shotgen.core.utils.logging import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_APP_CONFIG_PATH = Path("shotgen.yaml")


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Example:
        >>> detect_format("config.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()
    if suffix == ".json":
        return "json"
    elif suffix in (".yaml", ".yml"):
        return "yaml"
    raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> dict[str, Any]:
    """Load a raw configuration dictionary from JSON or YAML.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format is unsupported or the content is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)
    if fmt == "json":
        try:
            return read_json(path)
        except ValueError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    try:
        with path.open("r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    # safe_load returns None for empty files
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ValueError(f"Invalid YAML in {path}: expected a mapping")
    return content


def _load_env_vars_into_config(config: AppConfig) -> None:
    """Fill secrets missing from the file from the environment."""
    if config.provider.api_key is None:
        key = os.getenv("BFL_API_KEY")
        if key:
            logger.debug("Loaded BFL_API_KEY from environment")
            config.provider = config.provider.model_copy(update={"api_key": key})

    updates: dict[str, Any] = {}
    if config.text_service.api_key is None:
        key = os.getenv("SHOTGEN_TEXT_API_KEY")
        if key:
            logger.debug("Loaded SHOTGEN_TEXT_API_KEY from environment")
            updates["api_key"] = key
    if config.text_service.base_url is None:
        base_url = os.getenv("SHOTGEN_TEXT_BASE_URL")
        if base_url:
            logger.debug("Loaded SHOTGEN_TEXT_BASE_URL from environment")
            updates["base_url"] = base_url
    if updates:
        # Re-validate so an env base URL goes through the same checks as the file
        config.text_service = type(config.text_service).model_validate(
            {**config.text_service.model_dump(), **updates}
        )


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration.

    A missing file yields all defaults. Secrets not set in the file are
    read from BFL_API_KEY, SHOTGEN_TEXT_API_KEY and SHOTGEN_TEXT_BASE_URL.

    Raises:
        ValidationError: If the config is invalid
        ValueError: If the file cannot be parsed
    """
    path = Path(path) if path is not None else DEFAULT_APP_CONFIG_PATH

    if path.exists():
        config = AppConfig.model_validate(load_config(path))
    else:
        logger.debug(f"No config at {path}, using defaults")
        config = AppConfig()

    _load_env_vars_into_config(config)
    return config


def configure_logging_from_config(config: AppConfig) -> None:
    """Configure Python logging from the app config."""
    configure_logging(
        level=config.logging.level,
        format_string=config.logging.format,
        filename=config.logging.filename,
        structured=config.logging.structured,
    )

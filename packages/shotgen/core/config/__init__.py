"""Configuration models and loaders."""

from shotgen.core.config.loader import (
    configure_logging_from_config,
    detect_format,
    load_app_config,
    load_config,
)
from shotgen.core.config.models import (
    AppConfig,
    GenerationSettings,
    LoggingConfig,
    ProviderConfig,
    StorageConfig,
    TextServiceConfig,
)

__all__ = [
    "AppConfig",
    "GenerationSettings",
    "LoggingConfig",
    "ProviderConfig",
    "StorageConfig",
    "TextServiceConfig",
    "configure_logging_from_config",
    "detect_format",
    "load_app_config",
    "load_config",
]

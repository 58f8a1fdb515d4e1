"""Configuration models for shotgen."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _require_http_url(v: str) -> str:
    if not v.startswith(("http://", "https://")):
        raise ValueError("URL must start with http:// or https://")
    return v.rstrip("/")


class ProviderConfig(BaseModel):
    """Text-to-image provider connection settings."""

    model_config = ConfigDict(extra="ignore")

    base_url: str = "https://api.bfl.ai"
    model_path: str = "/v1/flux-dev"
    api_key: str | None = Field(default=None, repr=False)
    auth_header: str = "x-key"
    request_timeout_s: float = Field(default=30.0, gt=0)
    signed_url_ttl_s: float = Field(
        default=600.0, gt=0, description="How long a Ready asset URL stays fetchable"
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        return _require_http_url(v)


class TextServiceConfig(BaseModel):
    """Prompt-cleaning / scenario-analysis service settings.

    Without a base_url no text clients are built and prompts go to the
    provider as typed (trimmed).
    """

    model_config = ConfigDict(extra="ignore")

    base_url: str | None = None
    clean_path: str = "/api/clean-prompt"
    scenario_path: str = "/api/process-scenario"
    api_key: str | None = Field(default=None, repr=False)
    auth_header: str = "Authorization"
    auth_prefix: str | None = "Bearer"
    request_timeout_s: float = Field(default=30.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str | None) -> str | None:
        return None if v is None else _require_http_url(v)

    @property
    def enabled(self) -> bool:
        return self.base_url is not None


class GenerationSettings(BaseModel):
    """Polling and fan-out knobs for generation tasks."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    poll_interval_s: float = Field(default=0.5, ge=0)
    max_poll_attempts: int = Field(default=60, ge=1)
    max_concurrency: int | None = Field(
        default=None, ge=1, description="Cap on concurrent tasks per batch (None = unbounded)"
    )
    clean_prompts: bool = True


class StorageConfig(BaseModel):
    """Where generated assets are written."""

    model_config = ConfigDict(extra="ignore")

    assets_dir: str = "data/assets"
    public_base_url: str | None = None


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False
    filename: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


class AppConfig(BaseModel):
    """Application-level configuration."""

    model_config = ConfigDict(extra="ignore")  # Forward compatibility

    provider: ProviderConfig = ProviderConfig()
    text_service: TextServiceConfig = TextServiceConfig()
    generation: GenerationSettings = GenerationSettings()
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()

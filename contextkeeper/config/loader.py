"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/default.yaml  -- static defaults checked into the repo
  2. .env file            -- local developer overrides (not committed)
  3. Environment vars     -- set at deploy time

Only settings that were *explicitly* provided by layer 2 or 3 are merged on
top of the YAML; a pydantic-settings default never clobbers a YAML value.
The merged dict is then validated into a typed :class:`AppConfig`, so a bad
chunk size or an unknown strategy fails at startup instead of on the first
request.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from contextkeeper.config.settings import Settings
from contextkeeper.utils.errors import ConfigurationError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Settings field -> (YAML section, key inside the section)
_ENV_KEY_MAP: dict[str, tuple[str, str]] = {
    "app_host": ("server", "host"),
    "app_port": ("server", "port"),
    "app_env": ("server", "env"),
    "log_level": ("server", "log_level"),
    "max_chunk_size": ("context", "max_chunk_size"),
    "chunk_overlap": ("context", "chunk_overlap"),
    "embedding_dimension": ("embedding", "dimension"),
    "max_results": ("search", "max_results"),
    "tag_search_strategy": ("search", "tag_search_strategy"),
    "tag_candidate_cap": ("search", "tag_candidate_cap"),
}


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    env: str = "development"
    log_level: LogLevel = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class ContextConfig(BaseModel):
    """Chunking parameters; overlap must leave the window room to advance."""

    model_config = ConfigDict(frozen=True)

    max_chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)

    @model_validator(mode="after")
    def _overlap_below_size(self) -> ContextConfig:
        if self.chunk_overlap >= self.max_chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"max_chunk_size ({self.max_chunk_size})"
            )
        return self


class EmbeddingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: Literal["hashing"] = "hashing"
    dimension: int = Field(default=768, gt=0)


class SearchConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_results: int = Field(default=10, gt=0)
    tag_search_strategy: Literal["rank_all", "restrict"] = "rank_all"
    tag_candidate_cap: int = Field(default=1000, gt=0)


class AppConfig(BaseModel):
    """Fully resolved, validated application configuration."""

    model_config = ConfigDict(frozen=True)

    server: ServerConfig = Field(default_factory=ServerConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)


def load_config(path: str = "config/default.yaml", settings: Settings | None = None) -> AppConfig:
    """Load YAML config and merge environment-provided Settings on top.

    Args:
        path: Path to the YAML configuration file.  A missing file is not an
              error; built-in defaults are used instead.
        settings: Pre-built Settings (mainly for tests).  Read from the
                  environment when omitted.

    Returns:
        The validated AppConfig.

    Raises:
        ConfigurationError: If the YAML is malformed or any value is invalid.
    """
    config_path = Path(path)
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Malformed config file {path}: {exc}") from exc
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping at the top level")
    else:
        yaml_config = {}

    settings = settings if settings is not None else Settings()
    _deep_merge(yaml_config, _env_overrides(settings))

    try:
        return AppConfig.model_validate(yaml_config)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def _env_overrides(settings: Settings) -> dict[str, dict[str, Any]]:
    """Nest the explicitly-set Settings fields into the YAML section layout."""
    overrides: dict[str, dict[str, Any]] = {}
    for field_name in settings.model_fields_set:
        target = _ENV_KEY_MAP.get(field_name)
        if target is None:
            continue
        section, key = target
        overrides.setdefault(section, {})[key] = getattr(settings, field_name)
    return overrides


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value

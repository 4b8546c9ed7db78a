"""Configuration module -- exports Settings, AppConfig and load_config."""

from contextkeeper.config.loader import (
    AppConfig,
    ContextConfig,
    EmbeddingConfig,
    SearchConfig,
    ServerConfig,
    load_config,
)
from contextkeeper.config.settings import Settings

__all__ = [
    "AppConfig",
    "ContextConfig",
    "EmbeddingConfig",
    "SearchConfig",
    "ServerConfig",
    "Settings",
    "load_config",
]

"""Application settings loaded from environment variables via pydantic-settings.

Settings are read from two sources, highest priority first:

  1. **Environment variables**, e.g. ``MAX_CHUNK_SIZE=500``
  2. **.env file** in the working directory (local development only)

Field ``max_chunk_size`` maps to env var ``MAX_CHUNK_SIZE``.  Defaults below
apply when neither source sets a field.  Only fields that *were* set from the
environment override ``config/default.yaml`` (see ``loader.load_config``).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """contextkeeper settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Server ===
    app_host: str = "127.0.0.1"
    app_port: int = 3000
    app_env: str = "development"
    log_level: str = "INFO"

    # === Chunking ===
    max_chunk_size: int = 1000
    chunk_overlap: int = 200

    # === Retrieval ===
    max_results: int = 10
    embedding_dimension: int = 768
    # "rank_all" ranks every tag-matched context; "restrict" narrows the
    # tag-matched set to contexts the embedding index nominates.
    tag_search_strategy: str = "rank_all"
    tag_candidate_cap: int = 1000

    # === CLI client ===
    server_url: str = "http://localhost:3000"

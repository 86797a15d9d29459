"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    mondrian_env: str = "development"
    mondrian_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Reconstructed-square cache capacity (entries, LRU)
    cache_max_entries: int = 256

    # Optional upper bound on size tiers; None = unbounded
    max_tier: int | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()

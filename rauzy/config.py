"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    rauzy_env: str = "development"
    rauzy_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173"]

    # Cache lifetimes (seconds)
    eigen_cache_ttl_s: float = 30 * 60
    point_cache_ttl_s: float = 10 * 60
    cache_sweep_interval_s: float = 5 * 60

    # Largest point set the API will compute
    max_target_count: int = 2_000_000

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()

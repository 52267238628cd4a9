"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "development"
    log_level: str = "info"

    # Print policy
    export_dpi: int = 300
    min_dpi: float = 180
    warn_dpi: float = 240
    min_edge_cm: float = 4.0
    max_edge_cm: float = 300.0
    freeform_max_long_side_cm: float = 20.0

    # Caches
    preview_cache_size: int = 64
    preview_cache_ttl_s: float = 600
    master_cache_size: int = 10
    master_cache_ttl_s: float = 600

    # Optional size catalog (JSON file)
    catalog_path: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "STICKERCUT_"}


settings = Settings()

"""
Trikono - Application Settings

Loads configuration from environment variables using Pydantic Settings
and applies the configured log level.
"""

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase (only needed when a client is built)
    supabase_url: str | None = None
    supabase_anon_key: str | None = None

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # Game hosting
    max_players: int = 4
    shuffle_seed: int | None = None
    poll_interval: float = 0.5
    persist_snapshots: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached singleton settings instance."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Attach one stream handler to the root logger at the configured level."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else settings.log_level.upper()
    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

"""
Configuration settings using Pydantic.

Loads settings from environment variables and .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./homescore.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Scoring
    batch_max_workers: Optional[int] = None  # None = CPU count
    parallel_batch_threshold: int = 32
    default_preset: Optional[str] = None
    log_dir: str = ""

    @property
    def async_database_url(self) -> str:
        """Convert database URL to async version if needed."""
        url = self.database_url
        if url.startswith("sqlite://"):
            return url.replace("sqlite://", "sqlite+aiosqlite://")
        return url


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()

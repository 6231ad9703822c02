"""Configuration settings for polaris."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from polaris.utils import get_polaris_home


class Settings(BaseSettings):
    """Settings loaded from ``POLARIS_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="POLARIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Supabase (remote persistence + identity). Both unset means local only.
    supabase_url: str | None = None
    supabase_key: str | None = None  # Publishable/anon key
    supabase_access_token: str | None = None  # Signed-in session, if any

    # Skip identity resolution and act as this owner
    owner_id: str | None = None

    # Local storage
    data_dir: Path | None = None
    cache_path: Path | None = None

    log_level: str = "INFO"

    # Notes widget
    note_debounce_seconds: float = 1.0

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    def resolved_data_dir(self) -> Path:
        return self.data_dir.expanduser() if self.data_dir else get_polaris_home()

    def resolved_cache_path(self) -> Path:
        return self.cache_path or self.resolved_data_dir() / "cache.db"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Centralized engine settings using pydantic-settings.

All environment variable reads are consolidated here. Import `get_settings`
from this module rather than reading os.environ directly.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables.

    All env vars are prefixed with SPCENGINE_ (case-insensitive).
    """

    model_config = SettingsConfigDict(
        env_prefix="SPCENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_format: str = "console"
    log_level: str = "INFO"

    # Analysis defaults used by SPCConfiguration.from_settings
    default_subgroup_size: int = 5
    default_enabled_rules: frozenset[int] = frozenset(range(1, 9))
    default_chart_type: str = "xbar-r"


@lru_cache
def get_settings() -> Settings:
    """Return the cached engine settings singleton."""
    return Settings()

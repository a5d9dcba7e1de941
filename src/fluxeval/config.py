"""Application settings loaded from environment variables and ``.env``.

All variables use the ``FLUXEVAL_`` prefix, e.g. ``FLUXEVAL_DATA_DIR=/srv/flux``
or ``FLUXEVAL_SITES='["ES-Amo", "FR-Pue", "US-Ton"]'``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fluxeval.reference.sites import DEFAULT_SITES


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FLUXEVAL_",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "fluxeval"
    app_env: str = "development"
    debug: bool = False

    data_dir: Path = Path("data")
    sites: list[str] = Field(default_factory=lambda: list(DEFAULT_SITES))

    # Year-completeness policy. Defaults keep every year and every site.
    min_valid_days: int = Field(default=0, ge=0, le=366)
    min_years: int = Field(default=0, ge=0)

    fit_max_iterations: int = Field(default=2000, gt=0)
    fit_tolerance: float = Field(default=1e-10, gt=0)

    validation_ttl_days: int = Field(default=30, ge=0)
    report_port: int = 8000


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()

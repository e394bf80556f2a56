"""
Application configuration via pydantic-settings.

All config is read from ``TRIPCAST_*`` environment variables (or a local
``.env`` file) with defaults suitable for local use.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tripcast.schemas import ConditionType


class Settings(BaseSettings):
    """Runtime settings for the weather pipeline."""

    model_config = SettingsConfigDict(env_prefix="TRIPCAST_", env_file=".env", extra="ignore")

    # App
    app_name: str = "tripcast"
    app_env: str = Field(default="development", pattern=r"^(development|staging|production)$")
    debug: bool = False
    log_level: str = "INFO"

    # Cache TTLs (historical must outlive forecast and prediction)
    forecast_ttl_hours: float = Field(default=3, gt=0)
    prediction_ttl_hours: float = Field(default=3, gt=0)
    historical_ttl_hours: float = Field(default=30 * 24, gt=0)

    # Cache backend
    cache_backend: Literal["memory", "directory"] = "directory"
    cache_dir: Path = Path("data/cache")
    cache_max_entries: int = Field(default=5000, ge=0)  # 0 = unbounded
    cache_evict_count: int = Field(default=10, ge=1)
    sweep_interval_minutes: float = Field(default=30, ge=0)  # 0 = no background sweep

    # Forecast window and prediction
    forecast_max_days: int = Field(default=16, ge=1, le=16)
    historical_years: int = Field(default=3, ge=1)
    forecast_weight: float = 0.3
    historical_weight: float = 0.7

    # Upstream access
    min_request_interval: float = Field(default=0.25, gt=0)  # seconds between provider calls
    http_connect_timeout: float = Field(default=5, gt=0)
    http_timeout: float = Field(default=30, gt=0)  # read timeout
    http_retries: int = Field(default=3, ge=0)
    http_backoff: float = Field(default=1.0, ge=0)

    # Fallback used when neither a blend nor a historical estimate is obtainable
    default_temp_high: int = 20
    default_temp_low: int = 10
    default_condition: ConditionType = ConditionType.PARTLY_CLOUDY
    default_precipitation: int = Field(default=20, ge=0, le=100)
    default_humidity: int = Field(default=60, ge=0, le=100)
    default_wind_speed: int = Field(default=10, ge=0)
    default_uv_index: int = Field(default=5, ge=0)

    @model_validator(mode="after")
    def _historical_outlives_volatile_tiers(self) -> Settings:
        if self.historical_ttl_hours < max(self.forecast_ttl_hours, self.prediction_ttl_hours):
            msg = "historical_ttl_hours must be >= forecast_ttl_hours and prediction_ttl_hours"
            raise ValueError(msg)
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()

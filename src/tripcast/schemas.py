"""
Domain models for tripcast.

Pydantic models for weather conditions and the cache records that hold them.
These define the canonical schema - datasources normalize API responses to these.
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# =============================================================================
# Enumerations
# =============================================================================


class ConditionType(StrEnum):
    """Weather condition category, declared in ascending severity order."""

    CLEAR = "clear"
    MOSTLY_CLEAR = "mostly_clear"
    PARTLY_CLOUDY = "partly_cloudy"
    OVERCAST = "overcast"
    FOG = "fog"
    DRIZZLE = "drizzle"
    RAIN = "rain"
    SNOW = "snow"
    STORM = "storm"


class CacheTier(StrEnum):
    """Cache partition; each tier has its own TTL."""

    FORECAST = "forecast"
    HISTORICAL = "historical"
    PREDICTION = "prediction"


class DateCategory(StrEnum):
    """Routing bucket for a requested date."""

    PAST = "past"
    FORECAST = "forecast"
    FUTURE = "future"


# =============================================================================
# Geographic
# =============================================================================


class Location(BaseModel):
    """Geographic point with an optional IANA timezone."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    timezone: str | None = None
    name: str | None = None


# =============================================================================
# Weather
# =============================================================================


class WeatherCondition(BaseModel):
    """Weather for a single date at a single location.

    Provenance is carried by the two flags:

    ==================  =============  ===========
    produced by         is_historical  is_estimate
    ==================  =============  ===========
    forecast fetch      False          False
    archive fetch       True           False
    historical average  True           False
    blend / stand-in    False          True
    ==================  =============  ===========
    """

    model_config = ConfigDict(frozen=True)

    date: str = Field(..., description="ISO calendar date (YYYY-MM-DD)")
    location: Location
    temp_high: int = Field(..., description="Daily high, degrees Celsius")
    temp_low: int = Field(..., description="Daily low, degrees Celsius")
    condition: ConditionType
    precipitation: int = Field(default=0, ge=0, le=100)
    humidity: int = Field(default=50, ge=0, le=100)
    wind_speed: int = Field(default=0, ge=0, description="km/h")
    uv_index: int | None = Field(default=None, ge=0)
    sunrise: str | None = Field(default=None, description="HH:MM local")
    sunset: str | None = Field(default=None, description="HH:MM local")
    is_historical: bool = False
    is_estimate: bool = False

    def restamp(
        self,
        *,
        date: str | None = None,
        location: Location | None = None,
        is_historical: bool | None = None,
        is_estimate: bool | None = None,
    ) -> WeatherCondition:
        """Return a copy with a new date, location and/or provenance flags."""
        update: dict[str, object] = {}
        if date is not None:
            update["date"] = date
        if location is not None:
            update["location"] = location
        if is_historical is not None:
            update["is_historical"] = is_historical
        if is_estimate is not None:
            update["is_estimate"] = is_estimate
        return self.model_copy(update=update)


class CacheEntry(BaseModel):
    """A WeatherCondition as stored in the cache backend."""

    data: WeatherCondition
    cached_at: float = Field(..., description="Unix timestamp of the write")
    tier: CacheTier


# =============================================================================
# Prediction
# =============================================================================


DEFAULT_FORECAST_WEIGHT = 0.3
DEFAULT_HISTORICAL_WEIGHT = 0.7


class BlendWeights(BaseModel):
    """Relative weights of the recent condition and the historical average.

    Weights are normalized to sum to 1. Non-finite weights, or weights that
    sum to zero or less, fall back to the 0.3 / 0.7 default.
    """

    model_config = ConfigDict(frozen=True)

    forecast: float = DEFAULT_FORECAST_WEIGHT
    historical: float = DEFAULT_HISTORICAL_WEIGHT

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        try:
            forecast = float(data.get("forecast", DEFAULT_FORECAST_WEIGHT))
            historical = float(data.get("historical", DEFAULT_HISTORICAL_WEIGHT))
        except (TypeError, ValueError):
            forecast = historical = math.nan
        total = forecast + historical
        if not math.isfinite(total) or total <= 0 or forecast < 0 or historical < 0:
            return {"forecast": DEFAULT_FORECAST_WEIGHT, "historical": DEFAULT_HISTORICAL_WEIGHT}
        return {"forecast": forecast / total, "historical": historical / total}


# =============================================================================
# Requests
# =============================================================================


class WeatherRequest(BaseModel):
    """One location and the dates wanted for it (batch input)."""

    location: Location
    dates: list[str] = Field(default_factory=list)

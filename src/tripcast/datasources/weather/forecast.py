"""16-day weather forecast from Open-Meteo Forecast API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from tripcast.conditions import wmo_code_to_condition
from tripcast.datasources.weather.client import (
    FORECAST_DAYS,
    OPEN_METEO_API,
    base_params,
    daily_rows,
    extract_time,
    get_json,
    percent_or,
    usable_day,
    whole_or,
)
from tripcast.schemas import WeatherCondition
from tripcast.services.http import create_session
from tripcast.units import fahrenheit_to_celsius

if TYPE_CHECKING:
    import requests

    from tripcast.schemas import Location
    from tripcast.services.ratelimit import RateLimiter

logger = logging.getLogger(__name__)

# Daily variables we request from the forecast API
FORECAST_VARS = [
    "temperature_2m_max",
    "temperature_2m_min",
    "weathercode",
    "precipitation_probability_max",
    "windspeed_10m_max",
    "relative_humidity_2m_max",
    "uv_index_max",
    "sunrise",
    "sunset",
]


def parse_forecast(data: dict[str, Any], location: Location) -> list[WeatherCondition]:
    """Convert a forecast response into conditions, skipping provider gaps."""
    conditions = []
    for row in daily_rows(data, FORECAST_VARS):
        if not usable_day(row):
            logger.debug("Dropping unusable forecast day %s", row["time"])
            continue
        conditions.append(
            WeatherCondition(
                date=row["time"],
                location=location,
                temp_high=fahrenheit_to_celsius(row["temperature_2m_max"]),
                temp_low=fahrenheit_to_celsius(row["temperature_2m_min"]),
                condition=wmo_code_to_condition(row["weathercode"]),
                precipitation=percent_or(row["precipitation_probability_max"], 0),
                humidity=percent_or(row["relative_humidity_2m_max"], 50),
                wind_speed=whole_or(row["windspeed_10m_max"], 0),
                uv_index=whole_or(row["uv_index_max"], 0),
                sunrise=extract_time(row["sunrise"]),
                sunset=extract_time(row["sunset"]),
                is_historical=False,
                is_estimate=False,
            )
        )
    return conditions


class ForecastClient:
    """Fetches the rolling forecast window for a location.

    One call always returns the whole window (today onward, in the
    destination's own timezone), whatever subset of dates the caller needs.
    """

    provider = "open-meteo forecast"

    def __init__(
        self,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
        *,
        forecast_days: int = FORECAST_DAYS,
    ) -> None:
        self.session = session or create_session()
        self.rate_limiter = rate_limiter
        self.forecast_days = forecast_days

    def fetch(self, location: Location) -> list[WeatherCondition]:
        """
        Fetch up to ``forecast_days`` days of forecast starting today.

        Raises:
            TransportError: If the request fails or the body is not JSON.
            DataQualityError: If the body has no daily block.
        """
        params = {
            **base_params(location),
            "daily": ",".join(FORECAST_VARS),
            "forecast_days": self.forecast_days,
        }
        data = get_json(
            self.session,
            OPEN_METEO_API,
            params,
            provider=self.provider,
            rate_limiter=self.rate_limiter,
        )
        conditions = parse_forecast(data, location)
        logger.info(
            "Fetched %d forecast days for (%s, %s)", len(conditions), location.lat, location.lon
        )
        return conditions

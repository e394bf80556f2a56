"""Historical daily weather from Open-Meteo Archive API."""

from __future__ import annotations

import calendar
import logging
import math
from datetime import date
from typing import TYPE_CHECKING, Any

from tripcast.conditions import wmo_code_to_condition
from tripcast.datasources.weather.client import (
    OPEN_METEO_HISTORICAL,
    base_params,
    daily_rows,
    get_json,
    percent_or,
    precipitation_mm_to_percent,
    usable_day,
    whole_or,
)
from tripcast.errors import DataQualityError, InsufficientHistoryError, TransportError
from tripcast.schemas import WeatherCondition
from tripcast.services.http import create_session
from tripcast.units import fahrenheit_to_celsius

if TYPE_CHECKING:
    import requests

    from tripcast.schemas import Location
    from tripcast.services.ratelimit import RateLimiter

logger = logging.getLogger(__name__)

# Daily variables we request from the archive API (no UV or sunrise/sunset there)
HISTORICAL_VARS = [
    "temperature_2m_max",
    "temperature_2m_min",
    "weathercode",
    "precipitation_sum",
    "windspeed_10m_max",
    "relative_humidity_2m_mean",
]


def parse_historical(data: dict[str, Any], location: Location) -> list[WeatherCondition]:
    """Convert an archive response into conditions, skipping provider gaps."""
    conditions = []
    for row in daily_rows(data, HISTORICAL_VARS):
        if not usable_day(row):
            logger.debug("Dropping unusable archive day %s", row["time"])
            continue
        conditions.append(
            WeatherCondition(
                date=row["time"],
                location=location,
                temp_high=fahrenheit_to_celsius(row["temperature_2m_max"]),
                temp_low=fahrenheit_to_celsius(row["temperature_2m_min"]),
                condition=wmo_code_to_condition(row["weathercode"]),
                precipitation=precipitation_mm_to_percent(row["precipitation_sum"]),
                humidity=percent_or(row["relative_humidity_2m_mean"], 50),
                wind_speed=whole_or(row["windspeed_10m_max"], 10),
                is_historical=True,
                is_estimate=False,
            )
        )
    return conditions


def parse_month_day(target_date: str) -> tuple[int, int]:
    """``"2027-07-14"`` -> ``(7, 14)``. The year part is ignored.

    Raises:
        ValueError: If month or day are not plausible calendar numbers.
    """
    parts = target_date.split("-") if isinstance(target_date, str) else []
    if len(parts) != 3 or not parts[1].isdigit() or not parts[2].isdigit():
        msg = f"Cannot read month/day from {target_date!r}"
        raise ValueError(msg)
    month, day = int(parts[1]), int(parts[2])
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        msg = f"Cannot read month/day from {target_date!r}"
        raise ValueError(msg)
    return month, day


def same_day_in_year(year: int, month: int, day: int) -> date:
    """The given month/day in ``year``, clamped to the month's last day.

    Feb 29 becomes Feb 28 in non-leap years.
    """
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


class HistoricalClient:
    """Fetches archived daily weather."""

    provider = "open-meteo archive"

    def __init__(
        self,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.session = session or create_session()
        self.rate_limiter = rate_limiter

    def fetch_range(
        self, location: Location, start_date: str, end_date: str
    ) -> list[WeatherCondition]:
        """
        Fetch every day from ``start_date`` to ``end_date`` (inclusive) in one call.

        Args:
            location: Where to fetch for.
            start_date: ISO date string (YYYY-MM-DD).
            end_date: ISO date string (YYYY-MM-DD).

        Raises:
            TransportError: If the request fails or the body is not JSON.
            DataQualityError: If the body has no daily block.
        """
        params = {
            **base_params(location),
            "start_date": start_date,
            "end_date": end_date,
            "daily": ",".join(HISTORICAL_VARS),
        }
        data = get_json(
            self.session,
            OPEN_METEO_HISTORICAL,
            params,
            provider=self.provider,
            rate_limiter=self.rate_limiter,
        )
        conditions = parse_historical(data, location)
        logger.info(
            "Fetched %d archive days %s..%s for (%s, %s)",
            len(conditions), start_date, end_date, location.lat, location.lon,
        )
        return conditions

    def fetch_for_years(
        self,
        location: Location,
        target_date: str,
        years: int,
        *,
        reference_year: int | None = None,
    ) -> list[WeatherCondition]:
        """
        Fetch the same calendar day from each of the past ``years`` years.

        One single-date call per year, so a gap in one year (a leap day, a
        provider outage) only loses that year. Results are ordered oldest
        year first.

        Args:
            location: Where to fetch for.
            target_date: Date whose month/day is wanted; its year is ignored.
            years: How many past years to walk.
            reference_year: Current year at the destination (defaults to today's).

        Raises:
            ValueError: If ``target_date`` has no usable month/day.
            InsufficientHistoryError: If fewer than ``ceil(years / 2)`` years
                returned data.
        """
        month, day = parse_month_day(target_date)
        if reference_year is None:
            reference_year = date.today().year

        results: list[WeatherCondition] = []
        for offset in range(years, 0, -1):
            day_in_year = same_day_in_year(reference_year - offset, month, day).isoformat()
            try:
                conditions = self.fetch_range(location, day_in_year, day_in_year)
            except (TransportError, DataQualityError) as err:
                logger.warning("Historical data unavailable for %s: %s", day_in_year, err)
                continue
            if conditions:
                results.append(conditions[0])
            else:
                logger.warning("Historical data unavailable for %s: no usable day", day_in_year)

        required = math.ceil(years / 2)
        if len(results) < required:
            raise InsufficientHistoryError(target_date, len(results), required)
        return results

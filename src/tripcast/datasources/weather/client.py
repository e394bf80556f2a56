"""Open-Meteo API constants and shared request/parse helpers.

API docs:
  - Forecast: https://open-meteo.com/en/docs
  - Archive: https://open-meteo.com/en/docs/historical-weather-api

Both endpoints answer with a ``daily`` object of *parallel arrays* indexed by
day offset (``time[i]``, ``temperature_2m_max[i]``, ...), zipped here by index.
Temperatures are requested in Fahrenheit (finer native increment) and
converted to Celsius once, on the way in.
"""

from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING, Any

import requests

from tripcast.conditions import is_valid_wmo_code
from tripcast.errors import DataQualityError, TransportError
from tripcast.units import round_coord, round_half_up

if TYPE_CHECKING:
    from tripcast.schemas import Location
    from tripcast.services.ratelimit import RateLimiter

logger = logging.getLogger(__name__)

OPEN_METEO_API = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_HISTORICAL = "https://archive-api.open-meteo.com/v1/archive"

FORECAST_DAYS = 16

# The provider fills gaps with 0 in both temperature columns; 0°F/0°F is a
# placeholder, not weather.
NULL_SENTINEL_F = 0.0

DEFAULT_SUN_TIME = "06:00"
_TIME_RE = re.compile(r"T(\d{2}:\d{2})")


def base_params(location: Location) -> dict[str, Any]:
    """Query parameters shared by both endpoints."""
    return {
        "latitude": round_coord(location.lat),
        "longitude": round_coord(location.lon),
        "timezone": "auto",
        "temperature_unit": "fahrenheit",
    }


def get_json(
    session: requests.Session,
    url: str,
    params: dict[str, Any],
    *,
    provider: str,
    rate_limiter: RateLimiter | None = None,
) -> dict[str, Any]:
    """Rate-limited GET returning decoded JSON; any failure is a TransportError."""
    if rate_limiter is not None:
        rate_limiter.acquire()
    try:
        resp = session.get(url, params=params)
        resp.raise_for_status()
        data: dict[str, Any] = resp.json()
    except requests.HTTPError as err:
        status = err.response.status_code if err.response is not None else None
        raise TransportError(provider, str(err), status) from err
    except requests.RequestException as err:
        raise TransportError(provider, str(err)) from err
    except ValueError as err:  # body was not JSON
        raise TransportError(provider, f"invalid JSON body: {err}") from err
    return data


def daily_rows(data: dict[str, Any], fields: list[str]) -> list[dict[str, Any]]:
    """Zip the parallel ``daily`` arrays into one dict per day.

    Missing arrays, or arrays shorter than ``time``, yield None for that field.
    """
    daily = data.get("daily")
    if not isinstance(daily, dict) or not isinstance(daily.get("time"), list):
        msg = "response has no daily.time array"
        raise DataQualityError(msg)

    columns = {name: daily.get(name) or [] for name in fields}
    rows = []
    for i, day in enumerate(daily["time"]):
        row: dict[str, Any] = {"time": day}
        for name, values in columns.items():
            row[name] = values[i] if i < len(values) else None
        rows.append(row)
    return rows


def is_finite_number(value: Any) -> bool:
    """True for real numbers that are not NaN/inf (bools excluded)."""
    return isinstance(value, int | float) and not isinstance(value, bool) and math.isfinite(value)


def usable_day(row: dict[str, Any]) -> bool:
    """Drop provider gaps: null temps, 0°F/0°F placeholders, missing codes."""
    if not isinstance(row.get("time"), str):
        return False
    high, low = row.get("temperature_2m_max"), row.get("temperature_2m_min")
    if not is_finite_number(high) or not is_finite_number(low):
        return False
    if high == NULL_SENTINEL_F and low == NULL_SENTINEL_F:
        return False
    return is_valid_wmo_code(row.get("weathercode"))


def number_or(value: Any, default: float) -> float:
    """``value`` if it is a finite number, else ``default``."""
    return value if is_finite_number(value) else default


def extract_time(iso_datetime: Any) -> str:
    """``"2024-01-01T06:30"`` -> ``"06:30"``; ``"06:00"`` when missing or malformed."""
    if isinstance(iso_datetime, str):
        match = _TIME_RE.search(iso_datetime)
        if match:
            return match.group(1)
    return DEFAULT_SUN_TIME


def precipitation_mm_to_percent(mm: Any) -> int:
    """Map accumulated precipitation to a probability-shaped percentage.

    0mm -> 0, <1mm -> 10, <5mm -> 30, <10mm -> 50, <20mm -> 70, else 90.
    """
    if not is_finite_number(mm) or mm <= 0:
        return 0
    if mm < 1:
        return 10
    if mm < 5:
        return 30
    if mm < 10:
        return 50
    if mm < 20:
        return 70
    return 90


def percent_or(value: Any, default: float) -> int:
    """Whole percentage clamped into 0..100."""
    return min(100, max(0, round_half_up(number_or(value, default))))


def whole_or(value: Any, default: float) -> int:
    """Non-negative whole number."""
    return max(0, round_half_up(number_or(value, default)))

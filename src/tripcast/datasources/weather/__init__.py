"""Open-Meteo weather data source.

Fetches forecast and historical daily weather from Open-Meteo (free, no API key).

Public API:
  - forecast: ForecastClient (16-day rolling window)
  - historical: HistoricalClient (archive ranges, same-day-across-years)
  - client: API URLs, shared request/parse helpers
"""

from tripcast.datasources.weather.client import (
    OPEN_METEO_API,
    OPEN_METEO_HISTORICAL,
)
from tripcast.datasources.weather.forecast import ForecastClient, parse_forecast
from tripcast.datasources.weather.historical import HistoricalClient, parse_historical

__all__ = [
    "OPEN_METEO_API",
    "OPEN_METEO_HISTORICAL",
    "ForecastClient",
    "HistoricalClient",
    "parse_forecast",
    "parse_historical",
]

"""
Weather resolution pipeline.

``WeatherPipeline.resolve(location, dates)`` returns the best obtainable
condition for each requested date:

  - past dates        -> archive API (one range call for all cache misses)
  - today .. +16 days -> forecast API (one call returns the whole window)
  - later dates, and
    forecast-window
    days the provider
    left out (gaps)   -> sequential prediction chain (blend / history / default)

The cache and rate limiters are process-wide services: build them once (see
``build_pipeline``) and share the pipeline between callers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

from tripcast.analysis.historical_average import average_conditions
from tripcast.analysis.prediction import blend_conditions
from tripcast.cache import CacheSweeper, WeatherCache, cache_key
from tripcast.classify import FORECAST_MAX_DAYS, group_dates_by_category, today_in_timezone
from tripcast.datasources.weather import ForecastClient, HistoricalClient
from tripcast.errors import WeatherError
from tripcast.schemas import (
    BlendWeights,
    CacheTier,
    ConditionType,
    DateCategory,
    Location,
    WeatherCondition,
)
from tripcast.services.http import create_session, open_meteo_retry
from tripcast.services.ratelimit import RateLimiter
from tripcast.store import DirectoryStore, MemoryStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from tripcast.config import Settings
    from tripcast.store import KeyValueStore

logger = logging.getLogger(__name__)

HISTORICAL_YEARS_FOR_PREDICTION = 3


@dataclass(frozen=True)
class DefaultCondition:
    """Values used when neither a blend nor a historical estimate is obtainable.

    A mild, partly cloudy day, always stamped as an estimate.
    """

    temp_high: int = 20
    temp_low: int = 10
    condition: ConditionType = ConditionType.PARTLY_CLOUDY
    precipitation: int = 20
    humidity: int = 60
    wind_speed: int = 10
    uv_index: int = 5

    def for_date(self, target_date: str, location: Location) -> WeatherCondition:
        return WeatherCondition(
            date=target_date,
            location=location,
            temp_high=self.temp_high,
            temp_low=self.temp_low,
            condition=self.condition,
            precipitation=self.precipitation,
            humidity=self.humidity,
            wind_speed=self.wind_speed,
            uv_index=self.uv_index,
            is_historical=False,
            is_estimate=True,
        )


@dataclass
class ForecastWindow:
    """Forecast days obtained for one request, plus the requested days that had none."""

    forecasts: dict[str, WeatherCondition]
    gaps: list[str]

    @property
    def last(self) -> WeatherCondition | None:
        """Chronologically latest forecast day (the default chain seed)."""
        if not self.forecasts:
            return None
        return self.forecasts[max(self.forecasts)]


class WeatherPipeline:
    """Routes dates to forecast, archive or prediction and merges the results."""

    def __init__(
        self,
        cache: WeatherCache,
        forecast_client: ForecastClient,
        historical_client: HistoricalClient,
        *,
        forecast_max_days: int = FORECAST_MAX_DAYS,
        historical_years: int = HISTORICAL_YEARS_FOR_PREDICTION,
        weights: BlendWeights | None = None,
        default_condition: DefaultCondition | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.cache = cache
        self.forecast_client = forecast_client
        self.historical_client = historical_client
        self.forecast_max_days = forecast_max_days
        self.historical_years = historical_years
        self.weights = weights or BlendWeights()
        self.default_condition = default_condition or DefaultCondition()
        self._clock = clock

    # -- public API -----------------------------------------------------------

    def resolve(self, location: Location, dates: list[str]) -> list[WeatherCondition]:
        """
        Best obtainable condition for each date, in the order requested.

        Dates for which nothing at all could be obtained are omitted. Never
        raises for an individual bad date.
        """
        if not dates:
            return []

        today = today_in_timezone(location, self._clock())
        groups = group_dates_by_category(dates, today, self.forecast_max_days)
        results: dict[str, WeatherCondition] = {}

        results.update(self._resolve_past(location, groups[DateCategory.PAST]))

        window = self._resolve_forecast(location, groups[DateCategory.FORECAST])
        results.update(window.forecasts)

        to_predict = sorted([*window.gaps, *groups[DateCategory.FUTURE]])
        if to_predict:
            results.update(self._predict_sequentially(location, to_predict, window, today))

        return [results[d] for d in dates if d in results]

    def get_historical(self, location: Location, dates: list[str]) -> list[WeatherCondition]:
        """Archive data for the past dates among ``dates`` only."""
        today = today_in_timezone(location, self._clock())
        past = group_dates_by_category(dates, today, self.forecast_max_days)[DateCategory.PAST]
        found = self._resolve_past(location, past)
        return [found[d] for d in dates if d in found]

    def get_forecast(self, location: Location, dates: list[str]) -> list[WeatherCondition]:
        """Forecast data for the forecast-window dates among ``dates`` only (no gap filling)."""
        today = today_in_timezone(location, self._clock())
        near = group_dates_by_category(dates, today, self.forecast_max_days)[DateCategory.FORECAST]
        window = self._resolve_forecast(location, near)
        return [window.forecasts[d] for d in dates if d in window.forecasts]

    # -- past -----------------------------------------------------------------

    def _resolve_past(self, location: Location, dates: list[str]) -> dict[str, WeatherCondition]:
        if not dates:
            return {}

        found = self.cache.get_for_dates(location.lat, location.lon, dates, CacheTier.HISTORICAL)
        missing = [d for d in dates if d not in found]
        if not missing:
            return found

        # One range call covering every miss beats one call per date
        try:
            fetched = self.historical_client.fetch_range(location, missing[0], missing[-1])
        except WeatherError as err:
            logger.error("Failed to fetch historical weather, using cached subset: %s", err)
            return found

        self.cache.set_conditions(location.lat, location.lon, fetched, CacheTier.HISTORICAL)
        wanted = set(missing)
        found.update({c.date: c for c in fetched if c.date in wanted})
        return found

    # -- forecast window ------------------------------------------------------

    def _resolve_forecast(self, location: Location, dates: list[str]) -> ForecastWindow:
        if not dates:
            return ForecastWindow(forecasts={}, gaps=[])

        forecasts = self.cache.get_for_dates(location.lat, location.lon, dates, CacheTier.FORECAST)
        if any(d not in forecasts for d in dates):
            # The provider returns the whole window whichever days we need
            try:
                fetched = self.forecast_client.fetch(location)
            except WeatherError as err:
                logger.error("Failed to fetch forecast; predicting the whole window: %s", err)
            else:
                self.cache.set_conditions(location.lat, location.lon, fetched, CacheTier.FORECAST)
                forecasts.update({c.date: c for c in fetched})

        gaps = [d for d in dates if d not in forecasts]
        if gaps:
            logger.debug("Forecast gaps for (%s, %s): %s", location.lat, location.lon, gaps)
        return ForecastWindow(forecasts=forecasts, gaps=gaps)

    # -- prediction chain -----------------------------------------------------

    def _predict_sequentially(
        self,
        location: Location,
        dates: list[str],
        window: ForecastWindow,
        today: date,
    ) -> dict[str, WeatherCondition]:
        """Walk ``dates`` (ascending) threading the previous result into the next blend.

        The chain starts from the latest forecast day obtained for the request.
        After that the seed only moves forward: to a real forecast day found
        for a date, or to the result produced for the previous date.
        """
        cached = self.cache.get_for_dates(location.lat, location.lon, dates, CacheTier.PREDICTION)
        results: dict[str, WeatherCondition] = {}
        previous = window.last

        for target in dates:
            forecast = window.forecasts.get(target)
            if forecast is not None:
                results[target] = previous = forecast
                continue

            hit = cached.get(target)
            if hit is None:
                hit = self._predict_date(location, target, previous, today)
            results[target] = previous = hit

        return results

    def _predict_date(
        self,
        location: Location,
        target: str,
        previous: WeatherCondition | None,
        today: date,
    ) -> WeatherCondition:
        """Blend, else historical estimate, else the default condition."""
        try:
            historical_avg = self._historical_average(location, target, today)
        except (WeatherError, ValueError) as err:
            # Without history neither the blend nor the estimate can be built
            logger.error("No weather obtainable for %s, using default condition: %s", target, err)
            return self.default_condition.for_date(target, location)

        if previous is not None:
            try:
                prediction = blend_conditions(
                    previous, historical_avg, target, self.weights, location
                )
            except ValueError as err:
                logger.warning("Failed to predict weather for %s: %s", target, err)
            else:
                self.cache.set(_prediction_key(location, target), prediction, CacheTier.PREDICTION)
                return prediction

        estimate = historical_avg.restamp(is_historical=False, is_estimate=True)
        self.cache.set(_prediction_key(location, target), estimate, CacheTier.PREDICTION)
        return estimate

    def _historical_average(self, location: Location, target: str, today: date) -> WeatherCondition:
        """Average of ``target``'s calendar day over past years (cached in the historical tier)."""
        key = _historical_key(location, target)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        years = self.historical_client.fetch_for_years(
            location, target, self.historical_years, reference_year=today.year
        )
        averaged = average_conditions(years, target, location)
        self.cache.set(key, averaged, CacheTier.HISTORICAL)
        return averaged


def _prediction_key(location: Location, target: str) -> str:
    return cache_key(CacheTier.PREDICTION, location.lat, location.lon, target)


def _historical_key(location: Location, target: str) -> str:
    return cache_key(CacheTier.HISTORICAL, location.lat, location.lon, target)


# =============================================================================
# Construction
# =============================================================================


def build_store(settings: Settings) -> KeyValueStore:
    """Cache backend selected by ``settings.cache_backend``."""
    if settings.cache_backend == "memory":
        return MemoryStore(max_entries=settings.cache_max_entries)
    return DirectoryStore(settings.cache_dir, max_entries=settings.cache_max_entries)


def build_pipeline(settings: Settings, *, start_sweeper: bool = True) -> WeatherPipeline:
    """
    Wire the process-wide services into a pipeline.

    Call once per process and share the result: the cache and the rate
    limiter only pay off through state accumulated across calls. Both
    Open-Meteo endpoints get their own limiter since they are separate hosts.
    """
    cache = WeatherCache(
        build_store(settings),
        {
            CacheTier.FORECAST: timedelta(hours=settings.forecast_ttl_hours),
            CacheTier.PREDICTION: timedelta(hours=settings.prediction_ttl_hours),
            CacheTier.HISTORICAL: timedelta(hours=settings.historical_ttl_hours),
        },
        evict_count=settings.cache_evict_count,
    )
    cache.cleanup_expired()

    if start_sweeper and settings.sweep_interval_minutes > 0:
        CacheSweeper(cache, timedelta(minutes=settings.sweep_interval_minutes)).start()

    session = create_session(
        open_meteo_retry(settings.http_retries, settings.http_backoff),
        timeout=(settings.http_connect_timeout, settings.http_timeout),
    )
    return WeatherPipeline(
        cache,
        ForecastClient(
            session,
            RateLimiter(settings.min_request_interval),
            forecast_days=settings.forecast_max_days,
        ),
        HistoricalClient(session, RateLimiter(settings.min_request_interval)),
        forecast_max_days=settings.forecast_max_days,
        historical_years=settings.historical_years,
        weights=BlendWeights(
            forecast=settings.forecast_weight, historical=settings.historical_weight
        ),
        default_condition=DefaultCondition(
            temp_high=settings.default_temp_high,
            temp_low=settings.default_temp_low,
            condition=settings.default_condition,
            precipitation=settings.default_precipitation,
            humidity=settings.default_humidity,
            wind_speed=settings.default_wind_speed,
            uv_index=settings.default_uv_index,
        ),
    )

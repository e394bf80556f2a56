"""
Forward-looking estimates beyond the forecast window.

A prediction for date D blends the most recent known condition (the last
forecast day, or the prediction for D-1) with the historical average for D's
calendar day. Chained day after day, estimates drift from the last known
trend toward the historical norm instead of jumping straight to it.

The chain itself is walked by ``WeatherPipeline``; this module owns the
single-step blend.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tripcast.conditions import condition_to_severity, severity_to_condition
from tripcast.schemas import BlendWeights, WeatherCondition
from tripcast.units import round_half_up

if TYPE_CHECKING:
    from tripcast.schemas import Location

DEFAULT_WEIGHTS = BlendWeights()


def blend_conditions(
    recent: WeatherCondition,
    historical_avg: WeatherCondition,
    target_date: str,
    weights: BlendWeights = DEFAULT_WEIGHTS,
    location: Location | None = None,
) -> WeatherCondition:
    """
    Weighted blend of a recent condition and a historical average.

    Numeric fields are ``recent * w_recent + historical * w_historical``,
    rounded. The condition category is blended through its severity ordinal
    (0=clear ... 8=storm), so 40% rain / 60% overcast lands near drizzle.

    Args:
        recent: Last forecast day or previous prediction.
        historical_avg: Historical average for ``target_date``'s calendar day.
        target_date: Date to stamp on the result.
        weights: ``forecast`` applies to ``recent``; already normalized.
        location: Location to stamp (defaults to the historical average's).

    Returns:
        Condition stamped ``is_historical=False, is_estimate=True``.
    """
    w_recent, w_hist = weights.forecast, weights.historical

    def mix(a: float, b: float) -> int:
        return round_half_up(a * w_recent + b * w_hist)

    recent_uv = recent.uv_index if recent.uv_index is not None else historical_avg.uv_index
    hist_uv = historical_avg.uv_index if historical_avg.uv_index is not None else recent_uv
    uv_index = mix(recent_uv, hist_uv) if recent_uv is not None and hist_uv is not None else None

    severity = (
        condition_to_severity(recent.condition) * w_recent
        + condition_to_severity(historical_avg.condition) * w_hist
    )

    return WeatherCondition(
        date=target_date,
        location=location or historical_avg.location,
        temp_high=mix(recent.temp_high, historical_avg.temp_high),
        temp_low=mix(recent.temp_low, historical_avg.temp_low),
        condition=severity_to_condition(severity),
        precipitation=mix(recent.precipitation, historical_avg.precipitation),
        humidity=mix(recent.humidity, historical_avg.humidity),
        wind_speed=mix(recent.wind_speed, historical_avg.wind_speed),
        uv_index=uv_index,
        sunrise=recent.sunrise or historical_avg.sunrise,
        sunset=recent.sunset or historical_avg.sunset,
        is_historical=False,
        is_estimate=True,
    )

"""Average several past years of one calendar day into a single condition."""

from __future__ import annotations

import statistics
from collections import Counter
from typing import TYPE_CHECKING

from tripcast.schemas import WeatherCondition
from tripcast.units import round_half_up

if TYPE_CHECKING:
    from tripcast.schemas import ConditionType, Location

# Stand-ins for optional fields a year did not report
DEFAULT_UV_INDEX = 3


def mode_condition(conditions: list[WeatherCondition]) -> ConditionType:
    """Most frequent category; ties go to the one seen first."""
    counts = Counter(c.condition for c in conditions)
    # Counter preserves first-insertion order and max() keeps the first maximum
    return max(counts, key=lambda condition: counts[condition])


def average_conditions(
    conditions: list[WeatherCondition],
    target_date: str,
    location: Location | None = None,
) -> WeatherCondition:
    """
    Combine the same calendar day from several years into one condition.

    Numeric fields are rounded arithmetic means; the categorical condition is
    the mode. A single input is returned as-is, re-stamped with the target
    date and location.

    The result is stamped ``is_historical=True, is_estimate=False``; callers
    re-stamp it when they use it as a stand-in for a future date.

    Args:
        conditions: One condition per year, oldest first.
        target_date: Date to stamp on the result.
        location: Location to stamp on the result (defaults to the first input's).

    Raises:
        ValueError: If ``conditions`` is empty.
    """
    if not conditions:
        msg = "Cannot average an empty list of conditions"
        raise ValueError(msg)

    location = location or conditions[0].location
    if len(conditions) == 1:
        return conditions[0].restamp(date=target_date, location=location)

    def mean(values: list[float]) -> int:
        return round_half_up(statistics.fmean(values))

    uv_values = [c.uv_index if c.uv_index is not None else DEFAULT_UV_INDEX for c in conditions]

    return WeatherCondition(
        date=target_date,
        location=location,
        temp_high=mean([c.temp_high for c in conditions]),
        temp_low=mean([c.temp_low for c in conditions]),
        condition=mode_condition(conditions),
        precipitation=mean([c.precipitation for c in conditions]),
        humidity=mean([c.humidity for c in conditions]),
        wind_speed=mean([c.wind_speed for c in conditions]),
        uv_index=mean(uv_values),
        is_historical=True,
        is_estimate=False,
    )

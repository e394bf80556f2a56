"""
Date classification for routing requests to a data source.

"Today" is evaluated in the destination's timezone, not the caller's: a trip
planned from Los Angeles for Tokyo must treat Tokyo's calendar date as today,
otherwise dates near the boundary are misclassified by one day.

Buckets:
  - past:     before today                     -> archive API
  - forecast: today .. today + FORECAST_MAX_DAYS -> forecast API
  - future:   anything later                   -> prediction chain
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tripcast.schemas import DateCategory, Location
from tripcast.units import round_half_up

logger = logging.getLogger(__name__)

FORECAST_MAX_DAYS = 16


def location_timezone(location: Location) -> tzinfo:
    """Resolve the timezone used to decide what "today" is at ``location``.

    Uses the IANA name when present and known. Otherwise falls back to a fixed
    offset of ``round(lon / 15)`` hours, which is right to within an hour for
    almost every inhabited place.
    """
    if location.timezone:
        try:
            return ZoneInfo(location.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(
                "Unknown timezone %r, using longitude offset instead", location.timezone
            )
    offset_hours = max(-12, min(14, round_half_up(location.lon / 15)))
    return timezone(timedelta(hours=offset_hours))


def today_in_timezone(location: Location, now: datetime | None = None) -> date:
    """Calendar date at ``location`` for the instant ``now`` (default: current time)."""
    if now is None:
        now = datetime.now(UTC)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(location_timezone(location)).date()


def parse_iso_date(value: str) -> date | None:
    """Parse a strict ``YYYY-MM-DD`` string, or None if malformed or impossible."""
    if not isinstance(value, str) or len(value) != 10 or value[4] != "-" or value[7] != "-":
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def classify_date(
    value: str,
    today: date,
    forecast_max_days: int = FORECAST_MAX_DAYS,
) -> DateCategory:
    """Classify one ISO date relative to ``today`` at the destination.

    Malformed or calendar-invalid dates (``2023-02-30``) are classified as
    ``future`` with a warning rather than rejected, so the pipeline degrades to
    its most conservative path.
    """
    parsed = parse_iso_date(value)
    if parsed is None:
        logger.warning("Invalid date %r; treating it as beyond the forecast window", value)
        return DateCategory.FUTURE

    diff = (parsed - today).days
    if diff < 0:
        return DateCategory.PAST
    if diff <= forecast_max_days:
        return DateCategory.FORECAST
    return DateCategory.FUTURE


def group_dates_by_category(
    dates: list[str],
    today: date,
    forecast_max_days: int = FORECAST_MAX_DAYS,
) -> dict[DateCategory, list[str]]:
    """Split dates into past / forecast / future buckets, each sorted ascending.

    Duplicate dates are collapsed; the caller's order is restored later by
    projecting results back onto the original list.
    """
    groups: dict[DateCategory, list[str]] = {category: [] for category in DateCategory}
    for value in dict.fromkeys(dates):
        groups[classify_date(value, today, forecast_max_days)].append(value)

    for bucket in groups.values():
        bucket.sort()
    return groups

"""Shared fixtures and fakes for the tripcast tests."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Any

import pytest

from tripcast.cache import WeatherCache
from tripcast.errors import InsufficientHistoryError, TransportError
from tripcast.schemas import ConditionType, Location, WeatherCondition
from tripcast.store import MemoryStore

PORTLAND = Location(lat=45.52, lon=-122.68, timezone="America/Los_Angeles")

# Fixed "now" for pipeline tests: noon on 2026-10-18 in Portland
NOW = datetime(2026, 10, 18, 19, 0, tzinfo=UTC)
TODAY = date(2026, 10, 18)


def day(offset: int) -> str:
    """ISO date ``offset`` days after TODAY."""
    return (TODAY + timedelta(days=offset)).isoformat()


def make_condition(
    date_str: str,
    *,
    location: Location = PORTLAND,
    high: int = 20,
    low: int = 10,
    condition: ConditionType = ConditionType.CLEAR,
    **overrides: Any,
) -> WeatherCondition:
    """Build a WeatherCondition with sensible defaults."""
    fields: dict[str, Any] = {
        "date": date_str,
        "location": location,
        "temp_high": high,
        "temp_low": low,
        "condition": condition,
        "precipitation": 10,
        "humidity": 50,
        "wind_speed": 10,
        "uv_index": 4,
    }
    fields.update(overrides)
    return WeatherCondition(**fields)


class FakeClock:
    """Manually advanced wall clock (seconds)."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeForecastClient:
    """Returns a fixed list of forecast days, or raises."""

    def __init__(self, days: list[WeatherCondition] | None = None, error: bool = False) -> None:
        self.days = days or []
        self.error = error
        self.calls = 0

    def fetch(self, location: Location) -> list[WeatherCondition]:
        self.calls += 1
        if self.error:
            raise TransportError("fake forecast", "connection refused")
        return list(self.days)


class FakeHistoricalClient:
    """Serves archive ranges from a dict and synthesizes per-year history."""

    def __init__(
        self,
        archive: dict[str, WeatherCondition] | None = None,
        *,
        history_high: int = 10,
        history_low: int = 0,
        history_condition: ConditionType = ConditionType.OVERCAST,
        range_error: bool = False,
        history_error: bool = False,
    ) -> None:
        self.archive = archive or {}
        self.history_high = history_high
        self.history_low = history_low
        self.history_condition = history_condition
        self.range_error = range_error
        self.history_error = history_error
        self.range_calls: list[tuple[str, str]] = []
        self.year_calls: list[str] = []

    def fetch_range(
        self, location: Location, start_date: str, end_date: str
    ) -> list[WeatherCondition]:
        self.range_calls.append((start_date, end_date))
        if self.range_error:
            raise TransportError("fake archive", "timed out")
        return [c for d, c in sorted(self.archive.items()) if start_date <= d <= end_date]

    def fetch_for_years(
        self,
        location: Location,
        target_date: str,
        years: int,
        *,
        reference_year: int | None = None,
    ) -> list[WeatherCondition]:
        self.year_calls.append(target_date)
        if self.history_error:
            raise InsufficientHistoryError(target_date, 0, 2)
        return [
            make_condition(
                f"{(reference_year or 2026) - offset}{target_date[4:]}",
                location=location,
                high=self.history_high,
                low=self.history_low,
                condition=self.history_condition,
                is_historical=True,
            )
            for offset in range(years, 0, -1)
        ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> WeatherCache:
    return WeatherCache(MemoryStore(), clock=clock)

"""Tests for historical averaging and prediction blending."""

from __future__ import annotations

import pytest
from conftest import PORTLAND, make_condition

from tripcast.analysis import average_conditions, blend_conditions
from tripcast.analysis.historical_average import mode_condition
from tripcast.schemas import BlendWeights, ConditionType, Location

TOKYO = Location(lat=35.68, lon=139.69, timezone="Asia/Tokyo")


class TestAverageConditions:
    """Test combining one calendar day over several years."""

    def test_empty_raises(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            average_conditions([], "2027-07-14")

    def test_single_input_restamped(self) -> None:
        year = make_condition("2025-07-14", high=31, is_historical=True)
        result = average_conditions([year], "2027-07-14", TOKYO)
        assert result.date == "2027-07-14"
        assert result.location == TOKYO
        assert result.temp_high == 31
        assert result.is_historical

    def test_means_are_rounded(self) -> None:
        years = [
            make_condition("2023-07-14", high=20, low=10, precipitation=10, humidity=40),
            make_condition("2024-07-14", high=21, low=11, precipitation=20, humidity=50),
        ]
        result = average_conditions(years, "2027-07-14")
        assert result.temp_high == 21  # 20.5 rounds up
        assert result.temp_low == 11
        assert result.precipitation == 15
        assert result.humidity == 45
        assert result.location == PORTLAND
        assert result.is_historical
        assert not result.is_estimate
        assert result.sunrise is None

    def test_missing_uv_uses_default(self) -> None:
        years = [
            make_condition("2023-07-14", uv_index=None),
            make_condition("2024-07-14", uv_index=None),
        ]
        assert average_conditions(years, "2027-07-14").uv_index == 3

    def test_condition_is_mode(self) -> None:
        years = [
            make_condition("2023-07-14", condition=ConditionType.RAIN),
            make_condition("2024-07-14", condition=ConditionType.CLEAR),
            make_condition("2025-07-14", condition=ConditionType.RAIN),
        ]
        assert average_conditions(years, "2027-07-14").condition == ConditionType.RAIN

    def test_mode_tie_goes_to_first_seen(self) -> None:
        years = [
            make_condition("2023-07-14", condition=ConditionType.SNOW),
            make_condition("2024-07-14", condition=ConditionType.FOG),
            make_condition("2025-07-14", condition=ConditionType.FOG),
            make_condition("2026-07-14", condition=ConditionType.SNOW),
        ]
        assert mode_condition(years) == ConditionType.SNOW


class TestBlendWeights:
    """Test weight normalization."""

    def test_defaults(self) -> None:
        weights = BlendWeights()
        assert weights.forecast == pytest.approx(0.3)
        assert weights.historical == pytest.approx(0.7)

    def test_normalizes(self) -> None:
        weights = BlendWeights(forecast=1, historical=3)
        assert weights.forecast == pytest.approx(0.25)
        assert weights.historical == pytest.approx(0.75)

    @pytest.mark.parametrize(
        ("forecast", "historical"),
        [(0, 0), (-1, 0.5), (float("nan"), 1), (float("inf"), 1)],
    )
    def test_invalid_falls_back_to_default(self, forecast: float, historical: float) -> None:
        weights = BlendWeights(forecast=forecast, historical=historical)
        assert weights.forecast == pytest.approx(0.3)
        assert weights.historical == pytest.approx(0.7)


class TestBlendConditions:
    """Test the single-step blend."""

    RECENT = make_condition(
        "2026-11-03",
        high=10,
        low=0,
        condition=ConditionType.RAIN,
        precipitation=80,
        humidity=90,
        wind_speed=30,
        uv_index=1,
        sunrise="07:40",
        sunset="17:05",
    )
    HISTORICAL = make_condition(
        "2026-11-04",
        high=20,
        low=10,
        condition=ConditionType.CLEAR,
        precipitation=20,
        humidity=50,
        wind_speed=10,
        uv_index=5,
        is_historical=True,
    )

    def test_default_weights(self) -> None:
        result = blend_conditions(self.RECENT, self.HISTORICAL, "2026-11-04")
        assert result.date == "2026-11-04"
        assert result.temp_high == 17
        assert result.temp_low == 7
        assert result.precipitation == 38
        assert result.humidity == 62
        assert result.wind_speed == 16
        assert result.uv_index == 4  # 0.3 + 3.5 = 3.8
        # severity 6 * 0.3 + 0 * 0.7 = 1.8 -> partly_cloudy
        assert result.condition == ConditionType.PARTLY_CLOUDY
        assert not result.is_historical
        assert result.is_estimate

    def test_all_recent_weight_copies_recent(self) -> None:
        result = blend_conditions(
            self.RECENT, self.HISTORICAL, "2026-11-04", BlendWeights(forecast=1, historical=0)
        )
        assert (result.temp_high, result.temp_low) == (10, 0)
        assert result.condition == ConditionType.RAIN
        assert result.precipitation == 80

    def test_all_historical_weight_copies_historical(self) -> None:
        result = blend_conditions(
            self.RECENT, self.HISTORICAL, "2026-11-04", BlendWeights(forecast=0, historical=1)
        )
        assert (result.temp_high, result.temp_low) == (20, 10)
        assert result.condition == ConditionType.CLEAR
        assert result.humidity == 50

    def test_sun_times_from_recent(self) -> None:
        result = blend_conditions(self.RECENT, self.HISTORICAL, "2026-11-04")
        assert (result.sunrise, result.sunset) == ("07:40", "17:05")

    def test_sun_times_fall_back_to_historical(self) -> None:
        recent = self.RECENT.model_copy(update={"sunrise": None, "sunset": None})
        historical = self.HISTORICAL.model_copy(update={"sunrise": "07:00", "sunset": "17:00"})
        result = blend_conditions(recent, historical, "2026-11-04")
        assert (result.sunrise, result.sunset) == ("07:00", "17:00")

    def test_missing_uv_on_one_side(self) -> None:
        recent = self.RECENT.model_copy(update={"uv_index": None})
        assert blend_conditions(recent, self.HISTORICAL, "2026-11-04").uv_index == 5

    def test_missing_uv_on_both_sides(self) -> None:
        recent = self.RECENT.model_copy(update={"uv_index": None})
        historical = self.HISTORICAL.model_copy(update={"uv_index": None})
        assert blend_conditions(recent, historical, "2026-11-04").uv_index is None

    def test_location_defaults_to_historical(self) -> None:
        historical = self.HISTORICAL.model_copy(update={"location": TOKYO})
        assert blend_conditions(self.RECENT, historical, "2026-11-04").location == TOKYO
        assert (
            blend_conditions(self.RECENT, historical, "2026-11-04", location=PORTLAND).location
            == PORTLAND
        )

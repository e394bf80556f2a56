"""Unit conversion and rounding helpers shared by the datasources and analysis."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up (toward +inf)."""
    return math.floor(value + 0.5)


def fahrenheit_to_celsius(fahrenheit: float) -> int:
    """Convert Fahrenheit to whole degrees Celsius."""
    return round_half_up((fahrenheit - 32) * 5 / 9)


def round_coord(coord: float) -> float:
    """Round a coordinate to 2 decimals (~1.1 km), the provider's grid scale."""
    return round_half_up(coord * 100) / 100

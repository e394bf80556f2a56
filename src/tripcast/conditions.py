"""Weather condition codes and severity ordering.

Pure conversion functions with no external dependencies.
"""

from __future__ import annotations

import math

from tripcast.schemas import ConditionType
from tripcast.units import round_half_up

# WMO Weather Interpretation Codes (https://open-meteo.com/en/docs)
WMO_CONDITIONS: dict[int, ConditionType] = {
    0: ConditionType.CLEAR,
    1: ConditionType.MOSTLY_CLEAR,
    2: ConditionType.PARTLY_CLOUDY,
    3: ConditionType.OVERCAST,
    45: ConditionType.FOG,
    48: ConditionType.FOG,  # depositing rime fog
    51: ConditionType.DRIZZLE,
    53: ConditionType.DRIZZLE,
    55: ConditionType.DRIZZLE,
    56: ConditionType.DRIZZLE,  # freezing drizzle
    57: ConditionType.DRIZZLE,
    61: ConditionType.RAIN,
    63: ConditionType.RAIN,
    65: ConditionType.RAIN,
    66: ConditionType.RAIN,  # freezing rain
    67: ConditionType.RAIN,
    71: ConditionType.SNOW,
    73: ConditionType.SNOW,
    75: ConditionType.SNOW,
    77: ConditionType.SNOW,  # snow grains
    80: ConditionType.RAIN,  # showers
    81: ConditionType.RAIN,
    82: ConditionType.RAIN,
    85: ConditionType.SNOW,  # snow showers
    86: ConditionType.SNOW,
    95: ConditionType.STORM,
    96: ConditionType.STORM,  # with hail
    99: ConditionType.STORM,
}

UNKNOWN_CODE_CONDITION = ConditionType.OVERCAST

# Declaration order of ConditionType is the severity order: clear=0 ... storm=8
SEVERITY_ORDER: list[ConditionType] = list(ConditionType)
MAX_SEVERITY = len(SEVERITY_ORDER) - 1


def is_valid_wmo_code(code: object) -> bool:
    """True if ``code`` is a usable (finite, non-negative, integral) number."""
    if isinstance(code, bool) or not isinstance(code, int | float):
        return False
    return math.isfinite(code) and code >= 0 and float(code).is_integer()


def wmo_code_to_condition(code: int) -> ConditionType:
    """Convert a WMO weather code to a ConditionType (overcast if unknown)."""
    return WMO_CONDITIONS.get(int(code), UNKNOWN_CODE_CONDITION)


def condition_to_severity(condition: ConditionType | str) -> int:
    """Ordinal severity of a condition: 0 (clear) to 8 (storm)."""
    return SEVERITY_ORDER.index(ConditionType(condition))


def severity_to_condition(severity: float) -> ConditionType:
    """Map a (possibly fractional) severity back to a condition.

    Rounds to the nearest ordinal and clamps into ``[0, MAX_SEVERITY]``.
    """
    if not math.isfinite(severity):
        return UNKNOWN_CODE_CONDITION
    index = min(max(round_half_up(severity), 0), MAX_SEVERITY)
    return SEVERITY_ORDER[index]

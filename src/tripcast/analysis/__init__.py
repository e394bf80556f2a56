"""Turning raw conditions into estimates.

- historical_average.py - same calendar day across past years -> one condition
- prediction.py         - recent condition + historical average -> forward estimate
"""

from tripcast.analysis.historical_average import average_conditions
from tripcast.analysis.prediction import blend_conditions

__all__ = ["average_conditions", "blend_conditions"]

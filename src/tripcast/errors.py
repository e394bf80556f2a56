"""Error taxonomy for the weather pipeline.

Only ``ConfigurationError`` is ever raised out of ``WeatherPipeline.resolve``;
everything else is caught at a bucket or per-date boundary and degraded.
"""

from __future__ import annotations


class WeatherError(Exception):
    """Base class for tripcast errors."""


class TransportError(WeatherError):
    """Network or HTTP failure talking to a weather provider."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        self.provider = provider
        self.status_code = status_code
        detail = f"{provider}: {message}"
        if status_code is not None:
            detail = f"{provider} returned {status_code}: {message}"
        super().__init__(detail)


class DataQualityError(WeatherError):
    """Provider responded, but the payload has no usable daily block."""


class InsufficientHistoryError(WeatherError):
    """Too few past years returned data to compute a trustworthy average."""

    def __init__(self, target_date: str, found: int, required: int) -> None:
        self.target_date = target_date
        self.found = found
        self.required = required
        super().__init__(
            f"Only {found} year(s) of history for {target_date}; need at least {required}"
        )


class CacheFault(WeatherError):
    """Cache backend unavailable or misbehaving."""


class StoreFullError(CacheFault):
    """Cache backend has no room for another entry."""


class ConfigurationError(WeatherError, ValueError):
    """Invalid construction-time configuration."""

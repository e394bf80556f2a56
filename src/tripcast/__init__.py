"""Tripcast - best-obtainable daily weather for any set of trip dates.

Architecture::

    classify.py    Date routing (past / forecast window / beyond the window)
    datasources/   External APIs (Open-Meteo forecast and archive)
    services/      Shared utilities (HTTP client with retry, rate limiter)
    store.py       Key-value backends (in-memory, JSON files on disk)
    cache.py       Tiered weather cache with TTL (forecast / historical / prediction)
    analysis/      Historical averaging and forecast/history blending
    pipeline.py    WeatherPipeline.resolve(location, dates) orchestrator
    flows/         Prefect orchestration (batch resolution for many locations)

Data flow: classify -> cache -> datasources -> analysis -> pipeline results
"""

__version__ = "0.1.0"

from tripcast.config import Settings
from tripcast.pipeline import WeatherPipeline, build_pipeline
from tripcast.schemas import Location, WeatherCondition

__all__ = [
    "Location",
    "Settings",
    "WeatherCondition",
    "WeatherPipeline",
    "__version__",
    "build_pipeline",
]

"""
Prefect flow for resolving weather for a batch of locations.

Each request (a location and its dates) is resolved by one task; all tasks
share a single pipeline, so they share its cache and rate limiters.

Run locally:
    python -m tripcast.flows.resolve requests.json

Run with Prefect dashboard:
    prefect server start &
    python -m tripcast.flows.resolve requests.json
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from prefect import flow, task
from prefect.cache_policies import NONE

from tripcast.config import get_settings
from tripcast.pipeline import WeatherPipeline, build_pipeline
from tripcast.schemas import WeatherRequest


def load_requests(path: Path) -> list[WeatherRequest]:
    """Read a JSON list of ``{"location": {...}, "dates": [...]}`` objects."""
    with path.open() as f:
        raw: list[dict[str, Any]] = json.load(f)
    return [WeatherRequest.model_validate(item) for item in raw]


@task(name="resolve-weather", cache_policy=NONE)
def resolve_request(pipeline: WeatherPipeline, request: WeatherRequest) -> list[dict[str, Any]]:
    """Resolve one location's dates into JSON-ready condition dicts."""
    conditions = pipeline.resolve(request.location, request.dates)
    return [c.model_dump(mode="json") for c in conditions]


@flow(name="resolve-batch", log_prints=True, validate_parameters=False)
def resolve_batch(
    weather_requests: list[WeatherRequest],
    pipeline: WeatherPipeline | None = None,
) -> dict[int, list[dict[str, Any]]]:
    """
    Resolve every request, keyed by its position in ``weather_requests``.

    Builds a pipeline from settings when none is passed in.
    """
    if pipeline is None:
        pipeline = build_pipeline(get_settings(), start_sweeper=False)

    results: dict[int, list[dict[str, Any]]] = {}
    for index, request in enumerate(weather_requests):
        loc = request.location
        print(f"Resolving {len(request.dates)} dates for ({loc.lat}, {loc.lon})...")
        results[index] = resolve_request(pipeline, request)
        print(f"Resolved {len(results[index])} of {len(request.dates)} dates")
    return results


if __name__ == "__main__":
    batch = load_requests(Path(sys.argv[1]))
    result = resolve_batch(batch)
    print(json.dumps(result, indent=2))

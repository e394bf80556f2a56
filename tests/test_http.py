"""Tests for the Open-Meteo HTTP session."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import requests

from tripcast.config import Settings
from tripcast.pipeline import build_pipeline
from tripcast.services.http import (
    DEFAULT_TIMEOUT,
    MAX_BACKOFF,
    create_session,
    open_meteo_retry,
)


def sent_kwargs(session: requests.Session, **send_kwargs: object) -> dict:
    prep = requests.Request("GET", "https://api.open-meteo.com/v1/forecast").prepare()
    with patch.object(
        requests.adapters.HTTPAdapter, "send", return_value=requests.Response()
    ) as mock_send:
        session.send(prep, **send_kwargs)
    return mock_send.call_args.kwargs


class TestOpenMeteoRetry:
    """Test the retry policy."""

    def test_honours_retry_after(self) -> None:
        assert open_meteo_retry().respect_retry_after_header

    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_retried_statuses(self, status: int) -> None:
        assert open_meteo_retry().is_retry("GET", status, has_retry_after=False)

    @pytest.mark.parametrize("status", [400, 404])
    def test_client_errors_not_retried(self, status: int) -> None:
        assert not open_meteo_retry().is_retry("GET", status, has_retry_after=False)

    def test_only_get_is_retried(self) -> None:
        assert not open_meteo_retry().is_retry("POST", 503, has_retry_after=False)

    def test_backoff_is_capped(self) -> None:
        retry = open_meteo_retry(total=10, backoff_factor=5)
        for _ in range(8):
            retry = retry.increment(method="GET", url="/v1/archive")
        assert retry.get_backoff_time() == MAX_BACKOFF

    def test_single_read_retry(self) -> None:
        retry = open_meteo_retry(total=5)
        assert retry.total == 5
        assert retry.read == 1

    def test_zero_retries(self) -> None:
        assert open_meteo_retry(total=0).total == 0


class TestCreateSession:
    """Test the session factory."""

    def test_adapters_carry_policy(self) -> None:
        retry = open_meteo_retry(total=7)
        s = create_session(retry)
        assert s.get_adapter("https://archive-api.open-meteo.com").max_retries is retry
        assert s.get_adapter("http://localhost").max_retries is retry

    def test_default_policy(self) -> None:
        adapter = create_session().get_adapter("https://api.open-meteo.com")
        assert adapter.max_retries.respect_retry_after_header
        assert adapter.max_retries.total == 3

    def test_headers(self) -> None:
        s = create_session()
        assert s.headers["User-Agent"].startswith("tripcast/")
        assert s.headers["Accept"] == "application/json"

    def test_default_timeout_is_connect_read_pair(self) -> None:
        assert sent_kwargs(create_session())["timeout"] == DEFAULT_TIMEOUT

    def test_custom_timeout_injected(self) -> None:
        assert sent_kwargs(create_session(timeout=42))["timeout"] == 42

    def test_explicit_timeout_not_overridden(self) -> None:
        assert sent_kwargs(create_session(timeout=42), timeout=99)["timeout"] == 99

    def test_sessions_are_independent(self) -> None:
        assert create_session() is not create_session()


class TestSessionFromSettings:
    """Test that settings reach the session."""

    def test_retry_and_timeouts_from_settings(self) -> None:
        settings = Settings(
            cache_backend="memory",
            http_retries=5,
            http_backoff=0.5,
            http_connect_timeout=2,
            http_timeout=12,
        )
        session = build_pipeline(settings, start_sweeper=False).forecast_client.session

        retry = session.get_adapter("https://api.open-meteo.com").max_retries
        assert retry.total == 5
        assert retry.backoff_factor == 0.5
        assert sent_kwargs(session)["timeout"] == (2, 12)

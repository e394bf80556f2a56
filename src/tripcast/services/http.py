"""
HTTP session for the Open-Meteo forecast and archive hosts.

Both hosts answer overload with 429 (sometimes carrying ``Retry-After``) and
the occasional 502/504 from their proxy. The session retries those on GET
only; anything else surfaces through ``resp.raise_for_status()`` and becomes a
``TransportError`` in the datasource layer.

Retries happen inside the adapter, after the caller has passed the
``RateLimiter``, so one acquired slot may cover several attempts. Backoff is
capped at ``MAX_BACKOFF`` so a retry storm cannot stall a prediction chain.
"""

from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})

MAX_BACKOFF = 10.0  # seconds

#: (connect, read) seconds; archive queries for long ranges read slowly
DEFAULT_TIMEOUT: tuple[float, float] = (5.0, 30.0)

USER_AGENT = "tripcast/0.1 (+https://open-meteo.com/en/terms)"


def open_meteo_retry(total: int = 3, backoff_factor: float = 1.0) -> Retry:
    """Retry policy for idempotent Open-Meteo reads, honouring ``Retry-After``."""
    return Retry(
        total=total,
        connect=total,
        read=1,  # a slow archive read is rarely faster the second time
        backoff_factor=backoff_factor,
        backoff_max=MAX_BACKOFF,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"GET"}),
        respect_retry_after_header=True,
        raise_on_status=False,
    )


def create_session(
    retry: Retry | None = None,
    timeout: float | tuple[float, float] = DEFAULT_TIMEOUT,
) -> requests.Session:
    """
    Build a session for the weather clients.

    Args:
        retry: Retry policy; ``open_meteo_retry()`` when omitted.
        timeout: Applied to every request that does not pass ``timeout=``.
    """
    s = requests.Session()
    adapter = HTTPAdapter(max_retries=retry or open_meteo_retry())
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})

    send = s.send

    def _send_with_timeout(
        prepared: requests.PreparedRequest, **kwargs: object
    ) -> requests.Response:
        kwargs.setdefault("timeout", timeout)
        return send(prepared, **kwargs)  # type: ignore[arg-type]

    s.send = _send_with_timeout  # type: ignore[method-assign]
    return s

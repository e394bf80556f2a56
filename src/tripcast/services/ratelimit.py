"""
Outbound rate limiting for a shared upstream host.

One ``RateLimiter`` per upstream host, shared by every caller in the process.
Callers queue up FIFO; a single drain thread releases them one at a time, at
least ``min_delay`` seconds apart, no matter how many threads raced to enqueue.

Usage::

    limiter = RateLimiter(min_delay=0.25)

    limiter.acquire()  # blocks until it is this caller's turn
    resp = session.get(url, params=params)
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import TYPE_CHECKING

from tripcast.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """FIFO limiter enforcing a minimum spacing between releases."""

    def __init__(
        self,
        min_delay: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not min_delay > 0:
            msg = f"RateLimiter min_delay must be > 0, got {min_delay!r}"
            raise ConfigurationError(msg)
        self.min_delay = min_delay
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._waiters: deque[threading.Event] = deque()
        self._draining = False
        self._last_request_time: float | None = None

    @property
    def pending(self) -> int:
        """Number of callers still waiting for a slot."""
        with self._lock:
            return len(self._waiters)

    def acquire(self) -> None:
        """Block until it is safe to issue one outbound call."""
        waiter = threading.Event()
        with self._lock:
            self._waiters.append(waiter)
            start_drain = not self._draining
            self._draining = True
        if start_drain:
            threading.Thread(target=self._drain, name="rate-limiter-drain", daemon=True).start()
        waiter.wait()

    def _drain(self) -> None:
        """Release queued waiters one by one until the queue is empty."""
        while True:
            with self._lock:
                if not self._waiters:
                    self._draining = False
                    return
                waiter = self._waiters.popleft()

            if self._last_request_time is not None:
                elapsed = self._clock() - self._last_request_time
                if elapsed < self.min_delay:
                    wait = self.min_delay - elapsed
                    logger.debug("Rate limit: waiting %.3fs", wait)
                    self._sleep(wait)

            self._last_request_time = self._clock()
            waiter.set()

"""
Shared services.

- http.py       - requests.Session with retry/backoff and a default timeout
- ratelimit.py  - FIFO rate limiter, one instance per upstream host
"""

from tripcast.services.http import create_session
from tripcast.services.ratelimit import RateLimiter

__all__ = ["RateLimiter", "create_session"]

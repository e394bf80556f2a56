"""External data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants, shared request/parse helpers
    └── {feature}.py      # One client per endpoint/concept

Only Open-Meteo is used today (``weather/``). Clients take an injected
``requests.Session`` and ``RateLimiter`` so one limiter per upstream host is
shared by every caller in the process.
"""

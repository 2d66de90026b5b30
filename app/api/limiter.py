"""Shared rate limiter for the scan endpoints.

Every scan spends detection-provider credits, so scans are capped per client
address. The Limiter instance is created here and shared between:
  - app/api/routes.py  (route decorators)
  - app/main.py        (app.state.limiter + SlowAPIMiddleware registration)

The limit string is read from ``AUTHENTICHECK_SCAN_RATE_LIMIT`` at call time so
it can be changed without code edits (slowapi accepts a callable).
"""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

DEFAULT_SCAN_RATE_LIMIT = "30/minute"


def scan_rate_limit() -> str:
    return os.environ.get("AUTHENTICHECK_SCAN_RATE_LIMIT", DEFAULT_SCAN_RATE_LIMIT)

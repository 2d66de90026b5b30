"""Shared outbound HTTP client factory.

One ``httpx.AsyncClient`` is created at lifespan startup, stored in
``app.state.http_client`` and used by both detection engines. It is NEVER
instantiated per-request.
"""

from __future__ import annotations

import httpx

from app.constants import DEFAULT_REQUEST_TIMEOUT_S

POOL_MAX_CONNECTIONS: int = 20
POOL_MAX_KEEPALIVE: int = 10
POOL_KEEPALIVE_EXPIRY: float = 30.0  # seconds

# Connecting should be quick even when a provider is slow to answer.
CONNECT_TIMEOUT_S: float = 10.0


def create_http_client(timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S) -> httpx.AsyncClient:
    """Create the shared client with pooling and timeouts configured.

    Args:
        timeout_s: Read/write/pool timeout per request (``detection.request_timeout_s``).
    """
    return httpx.AsyncClient(
        limits=httpx.Limits(
            max_connections=POOL_MAX_CONNECTIONS,
            max_keepalive_connections=POOL_MAX_KEEPALIVE,
            keepalive_expiry=POOL_KEEPALIVE_EXPIRY,
        ),
        timeout=httpx.Timeout(timeout_s, connect=min(CONNECT_TIMEOUT_S, timeout_s)),
        follow_redirects=True,
        headers={"Accept": "application/json"},
    )

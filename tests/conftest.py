"""Root test configuration for AuthentiCheck.

Clears every AUTHENTICHECK_* / EdenAI environment variable for each test so a
developer's shell (or a real ``.authenticheck/config.yaml`` pointed to by
AUTHENTICHECK_CONFIG) can never leak into the suite. Tests that need a key or
an engine override set it with their own monkeypatch.
"""

import pytest

_ENV_VARS = (
    "AUTHENTICHECK_CONFIG",
    "AUTHENTICHECK_PORT",
    "AUTHENTICHECK_ENGINE",
    "AUTHENTICHECK_BACKEND_URL",
    "AUTHENTICHECK_SCAN_RATE_LIMIT",
    "EDENAI_API_KEY",
    "API_KEY",
)


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Reset the in-memory rate limiter storage between tests.

    Prevents test-to-test rate limit bleed where multiple tests hitting the
    same endpoint within the same minute would trigger a 429.
    """
    from app.api.limiter import limiter
    try:
        # slowapi stores state in the underlying limits library storage backend
        limiter._storage.reset()
    except Exception:
        pass  # not every storage backend supports reset

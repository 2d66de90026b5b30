"""Programmatic uvicorn entry point for AuthentiCheck.

Reads host and port from the loaded config (127.0.0.1:8000 by default) and starts
uvicorn with hardened defaults.

Usage:
    python -m app.run
    authenticheck               # via pyproject.toml [project.scripts]
"""

from __future__ import annotations

import uvicorn

from app.config import load_config

# Maximum number of concurrent connections accepted by uvicorn (HTTP 503 beyond).
UVICORN_LIMIT_CONCURRENCY: int = 50

# OS-level TCP connection backlog queue size.
UVICORN_BACKLOG: int = 50

UVICORN_TIMEOUT_KEEP_ALIVE: int = 5


def main() -> None:
    """Start the AuthentiCheck server.

    Raises:
        SystemExit: Propagated from load_config() on config parse errors.
    """
    config = load_config()

    uvicorn.run(
        "app.main:app",
        host=config.server.host,
        port=config.server.port,
        limit_concurrency=UVICORN_LIMIT_CONCURRENCY,
        backlog=UVICORN_BACKLOG,
        timeout_keep_alive=UVICORN_TIMEOUT_KEEP_ALIVE,
    )


if __name__ == "__main__":
    main()

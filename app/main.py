"""AuthentiCheck FastAPI application factory + lifespan lifecycle.

This module implements:
  - create_app() — testable application factory
  - lifespan — @asynccontextmanager startup/shutdown sequence
  - /        route  — the browser form (single static HTML page)
  - app = create_app() — module-level instance for uvicorn

Startup sequence:
  1. load_config()          → app.state.config
  2. create_http_client()   → app.state.http_client (shared by both engines)
  3. ScanLatencyTracker()   → app.state.latency_tracker
     ScanOutcomeCounter()   → app.state.scan_outcomes
  4. app.state.ready = True

Shutdown (reverse):
  app.state.ready = False → close the shared HTTP client
"""

from __future__ import annotations

import os
import pathlib
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.limiter import limiter
from app.api.middleware import BodySizeLimitMiddleware
from app.api.routes import router as scan_router
from app.config import ENGINE_EDENAI, Config, load_config
from app.detection.http import create_http_client
from app.health import router as health_router
from app.utils.health import ScanLatencyTracker, ScanOutcomeCounter
from app.utils.logger import configure_logging, get_logger

# ─── Logging Setup ────────────────────────────────────────────────────────────
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
JSON_LOGS = os.getenv("JSON_LOGS", "true").lower() == "true"

configure_logging(log_level=LOG_LEVEL, json_output=JSON_LOGS)
logger = get_logger(__name__)

STATIC_DIR = pathlib.Path(__file__).parent / "static"


# ─── Dependencies ─────────────────────────────────────────────────────────────


async def require_ready(request: Request) -> None:
    """FastAPI dependency: raises HTTP 503 if app.state.ready is not True."""
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(
            status_code=503,
            detail={
                "message": "AuthentiCheck is starting up. Please try again shortly.",
                "code": "starting",
            },
        )


# ─── Lifespan ─────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("AuthentiCheck starting up...")

    # load_config() raises SystemExit on an invalid file, before ready=True is set.
    config: Config = load_config()
    app.state.config = config

    if config.detection.engine == ENGINE_EDENAI and not config.edenai.api_key:
        logger.warning(
            "EdenAI engine selected but EDENAI_API_KEY is not set — scans will fail "
            "with 'API key is not configured.'"
        )

    http_client: httpx.AsyncClient = create_http_client(config.detection.request_timeout_s)
    app.state.http_client = http_client

    app.state.latency_tracker = ScanLatencyTracker()
    app.state.scan_outcomes = ScanOutcomeCounter()

    app.state.ready = True
    logger.info(
        "AuthentiCheck ready",
        engine=config.detection.engine,
        host=config.server.host,
        port=config.server.port,
    )

    yield

    logger.info("AuthentiCheck shutting down...")
    app.state.ready = False

    try:
        await http_client.aclose()
        logger.info("HTTP client closed")
    except Exception as exc:  # noqa: BLE001
        logger.warning("HTTP client close error (non-fatal)", error=str(exc))

    logger.info("AuthentiCheck shutdown complete")


# ─── Application Factory ──────────────────────────────────────────────────────


def create_app() -> FastAPI:
    """Create and configure the AuthentiCheck FastAPI application.

    Call this directly in tests to get an isolated app instance.
    """
    # OpenAPI docs only in debug mode.
    _debug = os.getenv("DEBUG", "false").lower() == "true"

    application = FastAPI(
        title="AuthentiCheck",
        description="Checks text, images and videos for signs of AI generation",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if _debug else None,
        redoc_url="/redoc" if _debug else None,
        openapi_url="/openapi.json" if _debug else None,
    )

    application.state.ready = False

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:8000",
            "http://127.0.0.1:8000",
            "http://localhost:5173",  # Vite dev server
            "http://127.0.0.1:5173",
        ],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-AuthentiCheck-Scan-ID"],
    )

    # In Starlette the LAST-added middleware is OUTERMOST (runs first).
    application.add_middleware(BodySizeLimitMiddleware)
    application.add_middleware(SlowAPIMiddleware)

    @application.get("/", include_in_schema=False, tags=["form"])
    async def serve_form() -> FileResponse:
        """Serve the scan form (single HTML file, all CSS/JS inline)."""
        return FileResponse(str(STATIC_DIR / "index.html"), media_type="text/html")

    application.include_router(health_router)
    application.include_router(scan_router, dependencies=[Depends(require_ready)])

    @application.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=str(request.url.path),
        )
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
        logger.info("Request validation failed", fields=fields, path=str(request.url.path))
        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "message": "The request is missing required fields or has invalid values.",
                    "code": "invalid_request",
                    "fields": fields,
                },
                "scanId": None,
            },
        )

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "message": "An unexpected error occurred during the scan. Please try again.",
                    "code": "internal_error",
                },
                "scanId": None,
            },
        )

    return application


app = create_app()


if __name__ == "__main__":
    from app.run import main

    main()

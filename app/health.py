"""Health endpoints for AuthentiCheck.

Implements:
  GET /health           — primary health check (503 before ready, 200 after)
  GET /health/detection — engine configuration and scan metrics

Both share the ``app.state.ready`` gate set by the lifespan.

/health reports ``"degraded"`` when the configured engine cannot work at all
(EdenAI engine selected but no API key in the environment). It never calls a
detection provider: health checks must not spend provider credits.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request

from app.config import ENGINE_EDENAI, Config
from app.utils.health import ScanLatencyTracker, ScanOutcomeCounter

router = APIRouter(tags=["health"])


def _require_started(request: Request) -> Config:
    if not getattr(request.app.state, "ready", False):
        raise HTTPException(
            status_code=503,
            detail={
                "status": "starting",
                "message": "AuthentiCheck is starting up...",
            },
        )
    return request.app.state.config


def _engine_ready(config: Config) -> bool:
    if config.detection.engine == ENGINE_EDENAI:
        return bool(config.edenai.api_key)
    return bool(config.backend.analysis_url)


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Primary health check.

    Response body (200):
        {
          "status": "ok" | "degraded",
          "engine": "edenai" | "backend",
          "engine_ready": true,
          "avg_scan_ms": 0.0
        }
    """
    config = _require_started(request)
    latency_tracker: Optional[ScanLatencyTracker] = getattr(
        request.app.state, "latency_tracker", None
    )
    engine_ready = _engine_ready(config)
    return {
        "status": "ok" if engine_ready else "degraded",
        "engine": config.detection.engine,
        "engine_ready": engine_ready,
        "avg_scan_ms": round(latency_tracker.avg_ms, 1) if latency_tracker else 0.0,
    }


@router.get("/health/detection")
async def health_detection(request: Request) -> dict[str, Any]:
    """Engine settings and scan metrics. The API key itself is never returned."""
    config = _require_started(request)
    latency_tracker: Optional[ScanLatencyTracker] = getattr(
        request.app.state, "latency_tracker", None
    )
    outcomes: Optional[ScanOutcomeCounter] = getattr(request.app.state, "scan_outcomes", None)

    engine: dict[str, Any] = {"name": config.detection.engine}
    if config.detection.engine == ENGINE_EDENAI:
        engine.update(
            {
                "base_url": config.edenai.base_url,
                "api_key_configured": bool(config.edenai.api_key),
                "providers": {
                    "Text": config.edenai.text_providers,
                    "Image": config.edenai.image_providers,
                    "Video": config.edenai.video_providers,
                },
                "poll_interval_s": config.edenai.poll_interval_s,
                "poll_timeout_s": config.edenai.poll_timeout_s,
            }
        )
    else:
        engine.update(
            {
                "analysis_url": config.backend.analysis_url,
                "frame_count": config.detection.frame_count,
            }
        )

    return {
        "engine": engine,
        "avg_scan_ms": round(latency_tracker.avg_ms, 1) if latency_tracker else 0.0,
        "p99_scan_ms": round(latency_tracker.p99_ms, 1) if latency_tracker else 0.0,
        "scans": outcomes.snapshot() if outcomes else ScanOutcomeCounter().snapshot(),
    }

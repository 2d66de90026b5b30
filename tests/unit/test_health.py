"""Unit tests for /health, /health/detection and the in-memory scan metrics.

Covers:
  - GET /health and /health/detection return 503 before app.state.ready
  - GET /health reports "ok" when the engine can work, "degraded" when the
    EdenAI engine has no API key
  - /health/detection never returns the API key
  - ScanLatencyTracker rolling window, avg and p99
  - ScanOutcomeCounter totals and snapshot
"""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from app.config import ENGINE_BACKEND, Config
from app.main import create_app
from app.utils.health import ScanLatencyTracker, ScanOutcomeCounter

# ─── Helpers ──────────────────────────────────────────────────────────────────


def _patch_load_config(monkeypatch: pytest.MonkeyPatch, config: Config) -> None:
    monkeypatch.setattr("app.main.load_config", lambda: config)


def _config(engine: str = "edenai", api_key: str | None = None) -> Config:
    config = Config.defaults()
    config.detection.engine = engine
    config.edenai.api_key = api_key
    return config


# ─── 503 before ready ─────────────────────────────────────────────────────────


class TestHealth503BeforeReady:
    @pytest.mark.asyncio
    async def test_health_returns_503_before_ready(self) -> None:
        application = create_app()
        transport = ASGITransport(app=application)  # type: ignore[arg-type]
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health")
        assert response.status_code == 503
        assert response.json()["error"]["status"] == "starting"

    @pytest.mark.asyncio
    async def test_detection_health_returns_503_before_ready(self) -> None:
        application = create_app()
        transport = ASGITransport(app=application)  # type: ignore[arg-type]
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health/detection")
        assert response.status_code == 503


# ─── After startup ────────────────────────────────────────────────────────────


class TestHealthAfterStartup:
    def test_ok_with_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_load_config(monkeypatch, _config(api_key="secret-key"))
        with TestClient(create_app()) as client:
            response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "engine": "edenai",
            "engine_ready": True,
            "avg_scan_ms": 0.0,
        }

    def test_degraded_without_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_load_config(monkeypatch, _config())
        with TestClient(create_app()) as client:
            body = client.get("/health").json()
        assert body["status"] == "degraded"
        assert body["engine_ready"] is False

    def test_backend_engine_needs_no_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_load_config(monkeypatch, _config(engine=ENGINE_BACKEND))
        with TestClient(create_app()) as client:
            body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["engine"] == "backend"

    def test_detection_details_hide_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_load_config(monkeypatch, _config(api_key="secret-key"))
        with TestClient(create_app()) as client:
            response = client.get("/health/detection")
        assert response.status_code == 200
        body = response.json()
        assert "secret-key" not in response.text
        assert body["engine"]["name"] == "edenai"
        assert body["engine"]["api_key_configured"] is True
        assert body["engine"]["providers"]["Video"] == "sensity"
        assert body["scans"] == {"completed": 0, "failed": 0, "failures_by_code": {}}

    def test_detection_details_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _patch_load_config(monkeypatch, _config(engine=ENGINE_BACKEND))
        with TestClient(create_app()) as client:
            body = client.get("/health/detection").json()
        assert body["engine"]["analysis_url"] == Config.defaults().backend.analysis_url
        assert body["engine"]["frame_count"] == 5


# ─── ScanLatencyTracker ───────────────────────────────────────────────────────


class TestScanLatencyTracker:
    def test_empty(self) -> None:
        tracker = ScanLatencyTracker()
        assert tracker.avg_ms == 0.0
        assert tracker.p99_ms == 0.0
        assert tracker.count == 0

    def test_average(self) -> None:
        tracker = ScanLatencyTracker()
        for value in (100.0, 200.0, 300.0):
            tracker.record(value)
        assert tracker.avg_ms == pytest.approx(200.0)
        assert tracker.count == 3

    def test_p99_needs_ten_samples(self) -> None:
        tracker = ScanLatencyTracker()
        for value in range(9):
            tracker.record(float(value))
        assert tracker.p99_ms == 0.0
        tracker.record(50.0)
        assert tracker.p99_ms > 0.0

    def test_window_evicts_oldest(self) -> None:
        tracker = ScanLatencyTracker(window=3)
        for value in (1000.0, 1.0, 2.0, 3.0):
            tracker.record(value)
        assert tracker.count == 3
        assert tracker.avg_ms == pytest.approx(2.0)


# ─── ScanOutcomeCounter ───────────────────────────────────────────────────────


class TestScanOutcomeCounter:
    def test_snapshot(self) -> None:
        outcomes = ScanOutcomeCounter()
        outcomes.record_success()
        outcomes.record_success()
        outcomes.record_failure("invalid_input")
        outcomes.record_failure("provider_failed")
        outcomes.record_failure("invalid_input")
        assert outcomes.failed == 3
        assert outcomes.snapshot() == {
            "completed": 2,
            "failed": 3,
            "failures_by_code": {"invalid_input": 2, "provider_failed": 1},
        }

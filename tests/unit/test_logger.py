"""Unit tests for app/utils/logger.py — scan_id binding and PerformanceLogger."""

from __future__ import annotations

from typing import Any

import pytest

from app.utils.logger import (
    PerformanceLogger,
    add_scan_id,
    clear_scan_id,
    scan_id_var,
    set_scan_id,
)


class _CapturingLogger:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def _record(self, level: str):
        def log(event: str, **kwargs: Any) -> None:
            self.calls.append((level, event, kwargs))

        return log

    def __getattr__(self, level: str):
        return self._record(level)


class TestScanIdContext:
    def test_scan_id_added_while_set(self) -> None:
        set_scan_id("01HZXSCAN")
        try:
            event = add_scan_id(None, "info", {"event": "scan_started"})  # type: ignore[arg-type]
        finally:
            clear_scan_id()
        assert event["scan_id"] == "01HZXSCAN"

    def test_explicit_scan_id_not_overwritten(self) -> None:
        set_scan_id("01HZXSCAN")
        try:
            event = add_scan_id(None, "info", {"event": "x", "scan_id": "OTHER"})  # type: ignore[arg-type]
        finally:
            clear_scan_id()
        assert event["scan_id"] == "OTHER"

    def test_no_scan_id_outside_a_scan(self) -> None:
        clear_scan_id()
        assert scan_id_var.get() is None
        assert "scan_id" not in add_scan_id(None, "info", {"event": "x"})  # type: ignore[arg-type]


class TestPerformanceLogger:
    def test_success_logged_at_debug(self) -> None:
        logger = _CapturingLogger()
        with PerformanceLogger("edenai POST", logger) as perf:  # type: ignore[arg-type]
            pass
        assert logger.calls[0][0] == "debug"
        assert logger.calls[0][2]["operation"] == "edenai POST"
        assert perf.duration_ms >= 0.0

    def test_slow_logged_at_warning(self) -> None:
        logger = _CapturingLogger()
        with PerformanceLogger("frame sampling", logger, slow_ms=-1):  # type: ignore[arg-type]
            pass
        assert logger.calls[0][0] == "warning"

    def test_failure_logged_and_reraised(self) -> None:
        logger = _CapturingLogger()
        with pytest.raises(RuntimeError):
            with PerformanceLogger("backend analyze", logger):  # type: ignore[arg-type]
                raise RuntimeError("boom")
        level, _, fields = logger.calls[0]
        assert level == "error"
        assert fields["error_type"] == "RuntimeError"
        assert fields["error"] == "boom"

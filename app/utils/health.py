"""Scan metrics kept in memory for the health endpoints.

Provides:
  - ScanLatencyTracker — rolling window of the last N end-to-end scan durations
  - ScanOutcomeCounter — totals of completed and failed scans, failures by code

Both are created in the lifespan, stored on ``app.state`` and updated by the
scan routes. Single-event-loop use only; no locking.
"""

from __future__ import annotations

from collections import Counter, deque


class ScanLatencyTracker:
    """Rolling window of scan latency measurements (last *window* samples).

    Scans include provider round-trips and, for videos, job polling, so values
    range from under a second to several minutes.

    Usage::

        tracker = ScanLatencyTracker()
        tracker.record(1234.5)
        tracker.avg_ms, tracker.p99_ms, tracker.count
    """

    def __init__(self, window: int = 100) -> None:
        self._times: deque[float] = deque(maxlen=window)

    def record(self, duration_ms: float) -> None:
        self._times.append(duration_ms)

    @property
    def avg_ms(self) -> float:
        """Mean of the samples in the window; 0.0 when empty."""
        if not self._times:
            return 0.0
        return sum(self._times) / len(self._times)

    @property
    def p99_ms(self) -> float:
        """99th percentile; 0.0 until at least 10 samples exist."""
        if len(self._times) < 10:
            return 0.0
        sorted_times = sorted(self._times)
        idx = max(0, int(len(sorted_times) * 0.99) - 1)
        return sorted_times[idx]

    @property
    def count(self) -> int:
        return len(self._times)


class ScanOutcomeCounter:
    """Completed / failed scan totals since startup."""

    def __init__(self) -> None:
        self.completed: int = 0
        self.failures: Counter[str] = Counter()

    def record_success(self) -> None:
        self.completed += 1

    def record_failure(self, code: str) -> None:
        self.failures[code] += 1

    @property
    def failed(self) -> int:
        return sum(self.failures.values())

    def snapshot(self) -> dict:
        return {
            "completed": self.completed,
            "failed": self.failed,
            "failures_by_code": dict(self.failures),
        }

"""Scan ID generation for AuthentiCheck.

Every scan gets a ULID (26-character, Crockford Base32, time-sortable) that is:
  - returned to the browser as ``scanId`` in results and error bodies
  - sent as the ``X-AuthentiCheck-Scan-ID`` response header
  - bound into every structured log line emitted during the scan

Uses the `python-ulid` library — do NOT hand-roll ULID generation.
"""

from __future__ import annotations

from ulid import ULID


def generate_scan_id() -> str:
    """Return a new 26-character uppercase ULID string."""
    return str(ULID())

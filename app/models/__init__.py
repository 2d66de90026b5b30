"""AuthentiCheck models package.

Defines the shared data contracts used across the detection engines and the API:

  - scan.py    — ContentType, VideoInputType, ApiDetail, ScanResult
  - errors.py  — JSON error response builder for the single error banner

These models are the single source of truth for the scan-result wire format.
"""

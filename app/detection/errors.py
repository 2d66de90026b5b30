"""Exception hierarchy for the detection pipeline.

Every failure that can reach the user is a ``DetectionError`` subclass. Each
subclass carries the HTTP status and machine-readable ``code`` used by
``app.models.errors.build_error_response()``; ``str(exc)`` is the message shown
in the browser's error banner, so it must stay human-readable and must never
contain API keys or payload contents.

Categories:
  - invalid input        → InputValidationError   (400)
  - oversized input      → PayloadTooLargeError   (413)
  - unusable video       → FrameExtractionError   (422)
  - missing API key      → ConfigurationError     (500)
  - unreachable service  → ServiceUnavailableError (502)
  - non-JSON / proxy err → UpstreamResponseError  (502)
  - provider failure     → ProviderError          (502)
  - video job too slow   → JobTimeoutError        (504)

None of these are retried automatically.
"""

from __future__ import annotations


class DetectionError(Exception):
    """Base class for user-facing scan failures."""

    status_code: int = 500
    code: str = "scan_failed"
    default_message: str = "An unexpected error occurred during the scan. Please try again."

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class InputValidationError(DetectionError):
    status_code = 400
    code = "invalid_input"
    default_message = "The submitted content is not valid."


class PayloadTooLargeError(DetectionError):
    status_code = 413
    code = "payload_too_large"
    default_message = "The submitted content is too large."


class FrameExtractionError(DetectionError):
    status_code = 422
    code = "frame_extraction_failed"
    default_message = "Could not extract frames from the video. It might be too short or unsupported."


class ConfigurationError(DetectionError):
    status_code = 500
    code = "config_error"
    default_message = "API key is not configured."


class ServiceUnavailableError(DetectionError):
    status_code = 502
    code = "service_unavailable"
    default_message = "Could not reach the analysis service. Please try again later."


class UpstreamResponseError(DetectionError):
    status_code = 502
    code = "upstream_bad_response"
    default_message = "The analysis service returned an unexpected response (proxy error)."


class ProviderError(DetectionError):
    status_code = 502
    code = "provider_failed"
    default_message = "Failed to fetch data from AI detection service."


class JobTimeoutError(ProviderError):
    status_code = 504
    code = "provider_timeout"
    default_message = "Video analysis is taking too long. Please try again later."

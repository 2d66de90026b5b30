"""Backend proxy detection engine.

Posts every scan to a single analysis endpoint that fronts the detection
vendors, so no vendor API key lives in this service:

  POST <backend.analysis_url>
  {"type": "Text" | "Image" | "Video",
   "data": <text> | <base64 image> | [<base64 jpeg frame>, ...],
   "mimeType": "image/png",        # optional
   "fileName": "photo.png"}        # optional

The endpoint answers with a camelCase scan-result record (see
``app.models.scan.ScanResult.from_dict``). Videos are never uploaded whole:
the caller samples frames first and sends them as a list.

Failure mapping:
  - endpoint unreachable / timed out  → ServiceUnavailableError
  - body is not JSON (proxy error)    → UpstreamResponseError
  - non-2xx JSON body                 → ProviderError(body["error"])
  - 2xx JSON missing overallScore     → UpstreamResponseError
"""

from __future__ import annotations

from typing import Any, Optional, Union

import httpx

from app.detection.errors import ProviderError, ServiceUnavailableError, UpstreamResponseError
from app.detection.tips import tips_for
from app.models.scan import ContentType, ScanResult
from app.utils.logger import PerformanceLogger, get_logger

logger = get_logger(__name__)

_UNREACHABLE_ERRORS = (httpx.ConnectError, httpx.TimeoutException, httpx.RemoteProtocolError)

Payload = Union[str, list[str]]


def build_analyze_body(
    content_type: ContentType,
    data: Payload,
    mime_type: Optional[str] = None,
    file_name: Optional[str] = None,
) -> dict[str, Any]:
    """Serialise a scan into the analysis endpoint's JSON body."""
    body: dict[str, Any] = {"type": content_type.value, "data": data}
    if mime_type:
        body["mimeType"] = mime_type
    if file_name:
        body["fileName"] = file_name
    return body


def _error_text(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message")
    if isinstance(error, str):
        return error
    return body.get("message")


class BackendClient:
    """Client for the backend proxy analysis endpoint."""

    def __init__(self, http_client: httpx.AsyncClient, analysis_url: str) -> None:
        self._client = http_client
        self._url = analysis_url

    async def analyze(
        self,
        content_type: ContentType,
        data: Payload,
        *,
        mime_type: Optional[str] = None,
        file_name: Optional[str] = None,
    ) -> ScanResult:
        body = build_analyze_body(content_type, data, mime_type, file_name)
        try:
            with PerformanceLogger("backend analyze", logger, slow_ms=15_000):
                response = await self._client.post(self._url, json=body)
        except _UNREACHABLE_ERRORS as exc:
            logger.warning(
                "backend_unreachable",
                url=self._url,
                error_type=type(exc).__name__,
            )
            raise ServiceUnavailableError() from exc

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning(
                "backend_non_json_response",
                url=self._url,
                status_code=response.status_code,
                content_type=response.headers.get("content-type"),
            )
            raise UpstreamResponseError() from exc

        if response.status_code >= 400:
            message = _error_text(payload) or "The analysis service could not process this content."
            logger.warning(
                "backend_error_response",
                status_code=response.status_code,
                message=message,
            )
            raise ProviderError(message)

        if not isinstance(payload, dict):
            raise UpstreamResponseError()
        try:
            result = ScanResult.from_dict(payload, default_type=content_type)
        except (TypeError, ValueError) as exc:
            raise UpstreamResponseError(
                "The analysis service returned an incomplete scan result."
            ) from exc

        if not result.manual_inspection_tips:
            result.manual_inspection_tips = tips_for(result.content_type)
        if result.file_name is None and file_name:
            result.file_name = file_name
        return result

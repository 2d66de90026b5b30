"""EdenAI detection engine.

Calls the EdenAI-hosted AI-detection providers directly:

  Text:   POST /v2/text/ai_detection          (JSON, base64-free)
  Image:  POST /v2/image/ai_detection         (JSON, ``file`` = base64 image)
  Video:  POST /v2/video/ai_detection_async   (multipart upload or JSON ``file_url``)
          GET  /v2/video/jobs/{public_id}     (polled until finished / failed)

Every request carries ``Authorization: Bearer <EDENAI_API_KEY>``. The shared
``httpx.AsyncClient`` from ``app.state.http_client`` is used for all calls; this
module never creates its own client.

Failure mapping:
  - API key missing                               → ConfigurationError
  - httpx.ConnectError / TimeoutException / ...   → ServiceUnavailableError
  - non-2xx response                              → ProviderError(error.message)
  - 2xx response that is not JSON                 → UpstreamResponseError
  - video job status "failed"                     → ProviderError
  - video job still running after poll_timeout_s  → JobTimeoutError

Nothing is retried.
"""

from __future__ import annotations

import asyncio
import base64
import time
from typing import Any, Awaitable, Callable, Optional

import httpx

from app.config import EdenAIConfig
from app.detection.errors import (
    ConfigurationError,
    JobTimeoutError,
    ProviderError,
    ServiceUnavailableError,
    UpstreamResponseError,
)
from app.detection.scoring import detail_from_provider, details_from_results, overall_score
from app.detection.tips import tips_for
from app.models.scan import ContentType, ScanResult
from app.utils.logger import PerformanceLogger, get_logger

logger = get_logger(__name__)

TEXT_PATH = "/v2/text/ai_detection"
IMAGE_PATH = "/v2/image/ai_detection"
VIDEO_JOB_PATH = "/v2/video/ai_detection_async"
VIDEO_RESULT_PATH = "/v2/video/jobs/{job_id}"

VIDEO_PROVIDER_DISPLAY_NAMES: dict[str, str] = {"sensity": "Sensity AI"}

URL_FILE_NAME = "Video from URL"

# Transport-level failures: the service could not be reached at all.
_UNREACHABLE_ERRORS = (httpx.ConnectError, httpx.TimeoutException, httpx.RemoteProtocolError)

Sleeper = Callable[[float], Awaitable[Any]]


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Pull ``error.message`` out of an EdenAI error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return fallback


class EdenAIClient:
    """Thin async wrapper over the EdenAI AI-detection endpoints.

    Args:
        http_client: Shared httpx.AsyncClient.
        config:      EdenAI section of the app config (base URL, providers,
                     polling settings, API key).
        sleep:       Awaitable used between poll attempts (tests pass a no-op).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: EdenAIConfig,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._client = http_client
        self._config = config
        self._sleep = sleep

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _url(self, path: str) -> str:
        return f"{self._config.base_url.rstrip('/')}{path}"

    def _auth_headers(self) -> dict[str, str]:
        if not self._config.api_key:
            raise ConfigurationError("API key is not configured.")
        return {"Authorization": f"Bearer {self._config.api_key}"}

    async def _send(
        self,
        method: str,
        path: str,
        *,
        fallback_error: str,
        json: Optional[dict[str, Any]] = None,
        data: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON body."""
        headers = self._auth_headers()
        url = self._url(path)
        try:
            with PerformanceLogger(f"edenai {method} {path}", logger, slow_ms=15_000):
                response = await self._client.request(
                    method, url, headers=headers, json=json, data=data, files=files
                )
        except _UNREACHABLE_ERRORS as exc:
            logger.warning("edenai_unreachable", url=url, error_type=type(exc).__name__)
            raise ServiceUnavailableError(
                "Could not reach the AI detection service. Please try again later."
            ) from exc

        if response.status_code >= 400:
            message = _error_message(response, fallback_error)
            logger.warning(
                "edenai_error_response",
                url=url,
                status_code=response.status_code,
                message=message,
            )
            raise ProviderError(message)

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamResponseError(
                "The AI detection service returned an unexpected (non-JSON) response."
            ) from exc
        if not isinstance(body, dict):
            raise UpstreamResponseError(
                "The AI detection service returned an unexpected response."
            )
        return body

    def _build_result(
        self,
        content_type: ContentType,
        body: dict[str, Any],
        file_name: Optional[str],
    ) -> ScanResult:
        analysis = details_from_results(body)
        return ScanResult(
            overall_score=overall_score(analysis),
            content_type=content_type,
            analysis=analysis,
            manual_inspection_tips=tips_for(content_type),
            file_name=file_name,
        )

    # ── Text / Image ──────────────────────────────────────────────────────────

    async def scan_text(self, text: str) -> ScanResult:
        body = await self._send(
            "POST",
            TEXT_PATH,
            json={
                "providers": self._config.text_providers,
                "text": text,
                "fallback_providers": "",
            },
            fallback_error="Failed to fetch data from AI detection service.",
        )
        return self._build_result(ContentType.TEXT, body, None)

    async def scan_image(self, image: bytes, file_name: Optional[str] = None) -> ScanResult:
        body = await self._send(
            "POST",
            IMAGE_PATH,
            json={
                "providers": self._config.image_providers,
                "file": base64.b64encode(image).decode("ascii"),
                "fallback_providers": "",
            },
            fallback_error="Failed to fetch data from AI detection service.",
        )
        return self._build_result(ContentType.IMAGE, body, file_name)

    # ── Video (async job) ─────────────────────────────────────────────────────

    async def launch_video_job(
        self,
        *,
        video: Optional[bytes] = None,
        file_name: Optional[str] = None,
        mime_type: str = "video/mp4",
        url: Optional[str] = None,
    ) -> str:
        """Start an async video detection job and return its ``public_id``.

        Exactly one of ``video`` (uploaded bytes) or ``url`` must be given.
        """
        if (video is None) == (url is None):
            raise ValueError("launch_video_job() needs exactly one of video= or url=")

        fallback = "Failed to start video processing job."
        if video is not None:
            body = await self._send(
                "POST",
                VIDEO_JOB_PATH,
                data={"providers": self._config.video_providers, "fallback_providers": ""},
                files={"file": (file_name or "video.mp4", video, mime_type)},
                fallback_error=fallback,
            )
        else:
            body = await self._send(
                "POST",
                VIDEO_JOB_PATH,
                json={
                    "providers": self._config.video_providers,
                    "file_url": url,
                    "fallback_providers": "",
                },
                fallback_error=fallback,
            )

        job_id = body.get("public_id")
        if not job_id:
            raise ProviderError("Could not start the video analysis.")
        logger.info("video_job_launched", job_id=job_id)
        return str(job_id)

    async def poll_job(self, job_id: str) -> dict[str, Any]:
        """Poll a video job until it finishes.

        Raises:
            ProviderError:   Job reported ``failed``.
            JobTimeoutError: Job still running after ``poll_timeout_s``.
        """
        deadline = time.monotonic() + self._config.poll_timeout_s
        path = VIDEO_RESULT_PATH.format(job_id=job_id)
        attempts = 0
        while True:
            attempts += 1
            result = await self._send("GET", path, fallback_error="Polling failed.")
            status = result.get("status")
            if status == "finished":
                logger.info("video_job_finished", job_id=job_id, attempts=attempts)
                return result
            if status == "failed":
                raise ProviderError(
                    "Video processing failed. Please check the file or URL and try again."
                )
            if time.monotonic() + self._config.poll_interval_s > deadline:
                logger.warning("video_job_timeout", job_id=job_id, attempts=attempts)
                raise JobTimeoutError()
            logger.debug("video_job_pending", job_id=job_id, status=status, attempts=attempts)
            await self._sleep(self._config.poll_interval_s)

    def _video_result(self, job_result: dict[str, Any], file_name: str) -> ScanResult:
        results = job_result.get("results") or {}
        analysis = []
        for key in self._config.video_providers.split(","):
            key = key.strip()
            provider_result = results.get(key)
            if not isinstance(provider_result, dict) or provider_result.get("status") != "success":
                continue
            name = VIDEO_PROVIDER_DISPLAY_NAMES.get(key, key[:1].upper() + key[1:])
            analysis.append(detail_from_provider(name, provider_result))

        if not analysis:
            raise ProviderError("Video analysis provider failed or returned no data.")

        return ScanResult(
            overall_score=overall_score(analysis),
            content_type=ContentType.VIDEO,
            analysis=analysis,
            manual_inspection_tips=tips_for(ContentType.VIDEO),
            file_name=file_name,
        )

    async def scan_video_file(
        self, video: bytes, file_name: Optional[str] = None, mime_type: str = "video/mp4"
    ) -> ScanResult:
        job_id = await self.launch_video_job(video=video, file_name=file_name, mime_type=mime_type)
        job_result = await self.poll_job(job_id)
        return self._video_result(job_result, file_name or "video.mp4")

    async def scan_video_url(self, url: str) -> ScanResult:
        job_id = await self.launch_video_job(url=url)
        job_result = await self.poll_job(job_id)
        return self._video_result(job_result, URL_FILE_NAME)

"""Scan orchestration: validate → (sample frames) → call the configured engine.

``DetectionService`` is the only entry point the API layer uses. It owns no
state beyond the shared HTTP client and config; one instance is created per
request from ``app.state``.

Engine routing (``detection.engine`` in config):

  edenai   text  → EdenAI text detection
           image → EdenAI image detection
           video → EdenAI async video job (upload or URL), polled to completion
  backend  text / image → analysis endpoint as-is
           video → frames sampled locally (``detection.frame_count``), sent as a list

Calls are sequential; nothing is retried or run in parallel.
"""

from __future__ import annotations

import asyncio
import base64
from typing import Optional, Union

import httpx

from app.config import ENGINE_BACKEND, Config
from app.detection.backend import BackendClient
from app.detection.edenai import EdenAIClient
from app.detection.errors import FrameExtractionError, InputValidationError
from app.detection.frames import extract_frames
from app.detection.validation import (
    data_url_mime_type,
    decode_base64_payload,
    validate_text,
    validate_upload,
    validate_video_url,
)
from app.models.scan import ContentType, ScanResult, VideoInputType
from app.utils.logger import PerformanceLogger, get_logger

logger = get_logger(__name__)

# Upper bound on pre-sampled frames accepted by /api/analyze.
MAX_SUBMITTED_FRAMES = 32

NO_FRAMES_ERROR = "Could not extract frames from the video. It might be too short or unsupported."


class DetectionService:
    def __init__(self, http_client: httpx.AsyncClient, config: Config) -> None:
        self._config = config
        self._http_client = http_client

    @property
    def engine(self) -> str:
        return self._config.detection.engine

    def _edenai(self) -> EdenAIClient:
        return EdenAIClient(self._http_client, self._config.edenai)

    def _backend(self) -> BackendClient:
        return BackendClient(self._http_client, self._config.backend.analysis_url)

    # ── Frame sampling ────────────────────────────────────────────────────────

    async def sample_frames(self, source: Union[bytes, str]) -> list[str]:
        """Sample frames off the event loop; an empty result is an error."""
        with PerformanceLogger("frame sampling", logger, slow_ms=10_000):
            frames = await asyncio.to_thread(
                extract_frames,
                source,
                self._config.detection.frame_count,
                self._config.detection.request_timeout_s,
            )
        if not frames:
            raise FrameExtractionError(NO_FRAMES_ERROR)
        return frames

    # ── Operations ────────────────────────────────────────────────────────────

    async def scan_text(self, text: str) -> ScanResult:
        text = validate_text(text)
        logger.info("scan_started", content_type="Text", engine=self.engine, length=len(text))
        if self.engine == ENGINE_BACKEND:
            return await self._backend().analyze(ContentType.TEXT, text)
        return await self._edenai().scan_text(text)

    async def scan_image(
        self,
        image: bytes,
        mime_type: Optional[str] = None,
        file_name: Optional[str] = None,
    ) -> ScanResult:
        mime_type = validate_upload(ContentType.IMAGE, image, mime_type, file_name)
        logger.info(
            "scan_started",
            content_type="Image",
            engine=self.engine,
            size_bytes=len(image),
            mime_type=mime_type,
        )
        if self.engine == ENGINE_BACKEND:
            return await self._backend().analyze(
                ContentType.IMAGE,
                base64.b64encode(image).decode("ascii"),
                mime_type=mime_type,
                file_name=file_name,
            )
        return await self._edenai().scan_image(image, file_name)

    async def scan_video_file(
        self,
        video: bytes,
        mime_type: Optional[str] = None,
        file_name: Optional[str] = None,
    ) -> ScanResult:
        mime_type = validate_upload(ContentType.VIDEO, video, mime_type, file_name)
        logger.info(
            "scan_started",
            content_type="Video",
            engine=self.engine,
            source="file",
            size_bytes=len(video),
        )
        if self.engine == ENGINE_BACKEND:
            frames = await self.sample_frames(video)
            return await self._backend().analyze(
                ContentType.VIDEO, frames, mime_type="image/jpeg", file_name=file_name
            )
        return await self._edenai().scan_video_file(video, file_name, mime_type)

    async def scan_video_url(self, url: str) -> ScanResult:
        url = validate_video_url(url)
        logger.info("scan_started", content_type="Video", engine=self.engine, source="url")
        if self.engine == ENGINE_BACKEND:
            frames = await self.sample_frames(url)
            return await self._backend().analyze(
                ContentType.VIDEO, frames, mime_type="image/jpeg", file_name=url
            )
        return await self._edenai().scan_video_url(url)

    async def scan_frames(self, frames: list[str], file_name: Optional[str] = None) -> ScanResult:
        """Scan frames that were already sampled by the caller (backend engine only)."""
        if not frames:
            raise FrameExtractionError(NO_FRAMES_ERROR)
        if len(frames) > MAX_SUBMITTED_FRAMES:
            raise InputValidationError(
                f"Too many video frames submitted. Maximum: {MAX_SUBMITTED_FRAMES}."
            )
        for frame in frames:
            decode_base64_payload(frame)
        if self.engine != ENGINE_BACKEND:
            raise InputValidationError(
                "Pre-extracted video frames are only supported by the backend engine. "
                "Upload the video file instead."
            )
        logger.info(
            "scan_started",
            content_type="Video",
            engine=self.engine,
            source="frames",
            frame_count=len(frames),
        )
        return await self._backend().analyze(
            ContentType.VIDEO, frames, mime_type="image/jpeg", file_name=file_name
        )

    async def analyze(
        self,
        content_type: ContentType,
        data: Union[str, list[str]],
        mime_type: Optional[str] = None,
        file_name: Optional[str] = None,
    ) -> ScanResult:
        """Scan a ``{type, data, mimeType?, fileName?}`` submission.

        ``data`` is the text itself for Text; base64 file content for Image;
        base64 file content, an http(s) URL, or a list of base64 JPEG frames
        for Video.
        """
        if content_type == ContentType.TEXT:
            if not isinstance(data, str):
                raise InputValidationError("Text data must be a string.")
            return await self.scan_text(data)

        if content_type == ContentType.IMAGE:
            if not isinstance(data, str):
                raise InputValidationError("Image data must be a base64 string.")
            return await self.scan_image(
                decode_base64_payload(data), mime_type or data_url_mime_type(data), file_name
            )

        if isinstance(data, list):
            return await self.scan_frames(data, file_name)
        if VideoInputType.of(data) is VideoInputType.URL:
            return await self.scan_video_url(data)
        return await self.scan_video_file(
            decode_base64_payload(data), mime_type or data_url_mime_type(data), file_name
        )

"""Scan API endpoints for AuthentiCheck.

Provides:
  GET  /api/config          — limits, accepted types and loading messages for the form
  POST /api/scan/text       — JSON {"text": "..."}
  POST /api/scan/text/file  — multipart .txt upload (field "file")
  POST /api/scan/image      — multipart JPEG/PNG upload (field "file")
  POST /api/scan/video      — multipart MP4 upload (field "file") or form field "url"
  POST /api/analyze         — JSON {type, data, mimeType?, fileName?}

Every scan gets a ULID scan_id that is bound into the logs, returned as
``scanId`` in the body and sent as the ``X-AuthentiCheck-Scan-ID`` header, on
success and on failure alike. Failures are rendered by
``app.models.errors.build_error_response()``.

Scan endpoints are rate-limited (slowapi) and gated on ``app.state.ready`` by
the router-level ``require_ready`` dependency registered in create_app().
"""

import time
from typing import Awaitable, Callable, Optional, Union

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.api.limiter import limiter, scan_rate_limit
from app.constants import (
    CONTENT_TYPE_CONFIG,
    LOADING_MESSAGES,
    MAX_TEXT_LENGTH,
)
from app.detection.errors import DetectionError, InputValidationError
from app.detection.service import DetectionService
from app.detection.validation import validate_upload
from app.models.errors import SCAN_ID_HEADER, build_error_response
from app.models.scan import ContentType, ScanResult
from app.utils.logger import clear_scan_id, get_logger, set_scan_id
from app.utils.ulid import generate_scan_id

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["scan"])


# ─── Request Models ───────────────────────────────────────────────────────────


class TextScanRequest(BaseModel):
    text: str


class AnalyzeRequest(BaseModel):
    """Body of POST /api/analyze — same shape the backend proxy engine sends upstream."""

    type: str
    data: Union[str, list[str]]
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    file_name: Optional[str] = Field(default=None, alias="fileName")

    model_config = {"populate_by_name": True}


# ─── Helpers ──────────────────────────────────────────────────────────────────


def _service(request: Request) -> DetectionService:
    return DetectionService(request.app.state.http_client, request.app.state.config)


async def _run_scan(
    request: Request,
    scan: Callable[[DetectionService], Awaitable[ScanResult]],
) -> JSONResponse:
    """Run one scan under a fresh scan_id and render the result or the error."""
    scan_id = generate_scan_id()
    set_scan_id(scan_id)
    latency_tracker = getattr(request.app.state, "latency_tracker", None)
    outcomes = getattr(request.app.state, "scan_outcomes", None)
    started = time.perf_counter()
    try:
        try:
            result = await scan(_service(request))
        except DetectionError as exc:
            if outcomes is not None:
                outcomes.record_failure(exc.code)
            logger.info(
                "scan_failed",
                scan_id=scan_id,
                code=exc.code,
                status_code=exc.status_code,
                path=request.url.path,
            )
            return build_error_response(exc, scan_id)

        result.scan_id = scan_id
        duration_ms = (time.perf_counter() - started) * 1000
        if latency_tracker is not None:
            latency_tracker.record(duration_ms)
        if outcomes is not None:
            outcomes.record_success()
        logger.info(
            "scan_completed",
            scan_id=scan_id,
            content_type=result.content_type.value,
            overall_score=result.overall_score,
            providers=[item.provider for item in result.analysis],
            duration_ms=round(duration_ms, 1),
        )
        return JSONResponse(content=result.to_dict(), headers={SCAN_ID_HEADER: scan_id})
    finally:
        clear_scan_id()


async def _read_upload(file: Optional[UploadFile]) -> tuple[bytes, Optional[str], Optional[str]]:
    if file is None:
        return b"", None, None
    data = await file.read()
    return data, file.content_type, file.filename


# ─── Endpoints ────────────────────────────────────────────────────────────────


@router.get("/config")
async def form_config() -> dict:
    """Settings the browser form needs to render tabs and enforce limits client-side."""
    return {
        "maxTextLength": MAX_TEXT_LENGTH,
        "contentTypes": {
            content_type.value: settings for content_type, settings in CONTENT_TYPE_CONFIG.items()
        },
        "loadingMessages": list(LOADING_MESSAGES),
    }


@router.post("/scan/text")
@limiter.limit(scan_rate_limit)
async def scan_text(request: Request, body: TextScanRequest) -> JSONResponse:
    return await _run_scan(request, lambda service: service.scan_text(body.text))


@router.post("/scan/text/file")
@limiter.limit(scan_rate_limit)
async def scan_text_file(request: Request, file: UploadFile = File(...)) -> JSONResponse:
    data, mime_type, file_name = await _read_upload(file)

    async def _scan(service: DetectionService) -> ScanResult:
        validate_upload(ContentType.TEXT, data, mime_type, file_name)
        result = await service.scan_text(data.decode("utf-8-sig"))
        result.file_name = file_name
        return result

    return await _run_scan(request, _scan)


@router.post("/scan/image")
@limiter.limit(scan_rate_limit)
async def scan_image(request: Request, file: UploadFile = File(...)) -> JSONResponse:
    data, mime_type, file_name = await _read_upload(file)
    return await _run_scan(
        request, lambda service: service.scan_image(data, mime_type, file_name)
    )


@router.post("/scan/video")
@limiter.limit(scan_rate_limit)
async def scan_video(
    request: Request,
    file: Optional[UploadFile] = File(None),
    url: Optional[str] = Form(None),
) -> JSONResponse:
    """Scan a video upload or a video URL (exactly one of the two)."""
    data, mime_type, file_name = await _read_upload(file)

    async def _scan(service: DetectionService) -> ScanResult:
        if data and url:
            raise InputValidationError("Provide either a video file or a video URL, not both.")
        if url is not None and not data:
            return await service.scan_video_url(url)
        return await service.scan_video_file(data, mime_type, file_name)

    return await _run_scan(request, _scan)


@router.post("/analyze")
@limiter.limit(scan_rate_limit)
async def analyze(request: Request, body: AnalyzeRequest) -> JSONResponse:
    async def _scan(service: DetectionService) -> ScanResult:
        try:
            content_type = ContentType.parse(body.type)
        except ValueError as exc:
            raise InputValidationError(
                "Invalid content type. Expected one of: Text, Image, Video."
            ) from exc
        return await service.analyze(content_type, body.data, body.mime_type, body.file_name)

    return await _run_scan(request, _scan)

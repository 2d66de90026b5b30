"""Request body size limit middleware for AuthentiCheck.

Enforces the MAX_REQUEST_BODY_BYTES hard cap before any route runs, so an
oversized upload is rejected without being parsed, validated or sent to a
detection provider:

  1. Content-Length fast path: reject immediately on an oversized header value.
  2. Chunked slow path: accumulate the body with a rolling cap; reject as soon
     as the cap is exceeded.

Per-type limits (10 MB image, 100 MB video, 10 000 characters of text) are
enforced later by ``app.detection.validation``; this middleware only guards
against bodies no valid scan could ever need.
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.constants import MAX_REQUEST_BODY_BYTES
from app.utils.logger import get_logger

logger = get_logger(__name__)

_PAYLOAD_TOO_LARGE_BODY: dict = {
    "error": {
        "message": "Upload is too large. Max size for Video is 100MB.",
        "code": "payload_too_large",
    },
    "scanId": None,
}

_INVALID_CONTENT_LENGTH_BODY: dict = {
    "error": {
        "message": "Invalid Content-Length header",
        "code": "bad_request",
    },
    "scanId": None,
}


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Starlette middleware enforcing a hard request body cap.

    Args:
        app:       Wrapped ASGI app.
        max_bytes: Cap in bytes (defaults to MAX_REQUEST_BODY_BYTES).
    """

    def __init__(self, app, max_bytes: int = MAX_REQUEST_BODY_BYTES) -> None:
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        content_length_header = request.headers.get("content-length")

        # ── Phase 1: Content-Length fast path ─────────────────────────────────
        if content_length_header is not None:
            try:
                declared_size = int(content_length_header)
            except ValueError:
                logger.warning(
                    "Invalid Content-Length header",
                    value=content_length_header,
                    path=request.url.path,
                )
                return JSONResponse(status_code=400, content=_INVALID_CONTENT_LENGTH_BODY)

            if declared_size > self.max_bytes:
                logger.warning(
                    "Request body too large (Content-Length)",
                    declared_size=declared_size,
                    limit=self.max_bytes,
                    path=request.url.path,
                )
                return JSONResponse(status_code=413, content=_PAYLOAD_TOO_LARGE_BODY)

            return await call_next(request)

        # ── Phase 2: Chunked / no Content-Length, rolling cap ─────────────────
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return await call_next(request)

        body_chunks: list[bytes] = []
        total_size: int = 0

        async for chunk in request.stream():
            total_size += len(chunk)
            if total_size > self.max_bytes:
                logger.warning(
                    "Request body too large (chunked)",
                    accumulated_size=total_size,
                    limit=self.max_bytes,
                    path=request.url.path,
                )
                return JSONResponse(status_code=413, content=_PAYLOAD_TOO_LARGE_BODY)
            body_chunks.append(chunk)

        # Starlette's Request.body() returns the cached bytes when _body is set.
        request._body = b"".join(body_chunks)  # type: ignore[attr-defined]

        return await call_next(request)

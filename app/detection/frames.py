"""Video frame sampling for AuthentiCheck.

Samples ``frame_count`` evenly spaced frames from a video and exports each one
as a base64-encoded JPEG (no ``data:`` prefix). Frames are taken at
``k * duration / (frame_count + 1)`` for ``k = 1..frame_count`` so neither the
first nor the last frame of the clip is used.

Sources:
  - ``bytes``  — raw uploaded video; written to a temporary file for OpenCV
  - ``str``    — a local path or an http(s) URL opened directly by OpenCV

Resource release: the ``cv2.VideoCapture`` is released and any temporary file
is deleted on every exit path, success or failure.

This is blocking CPU/IO work. Async callers run it via ``asyncio.to_thread``.
"""

from __future__ import annotations

import base64
import math
import os
import tempfile
from typing import Optional, Union

import cv2

from app.constants import DEFAULT_FRAME_COUNT
from app.detection.errors import FrameExtractionError
from app.utils.logger import get_logger

logger = get_logger(__name__)

VideoSource = Union[bytes, str]

FILE_LOAD_ERROR = "Failed to load video. Please check if the file is valid and supported."
URL_LOAD_ERROR = (
    "Failed to load video from the URL. The host may block direct access to the "
    "media (common for sites like YouTube or TikTok). Please try downloading the "
    "video and using the 'Upload File' option instead."
)
INVALID_DURATION_ERROR = (
    "Cannot process video. Its duration is invalid or it may be a live stream."
)
FRAME_READ_ERROR = (
    "An error occurred while processing the video frames. "
    "The file may be corrupt or in an unsupported format."
)


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def sample_timestamps(duration_s: float, frame_count: int) -> list[float]:
    """Seek positions (seconds) for ``frame_count`` evenly spaced frames.

    Returns an empty list for a non-positive or non-finite duration.
    """
    if frame_count <= 0 or duration_s <= 0 or not math.isfinite(duration_s):
        return []
    step = duration_s / (frame_count + 1)
    timestamps: list[float] = []
    current = step
    while len(timestamps) < frame_count and current <= duration_s:
        timestamps.append(current)
        current += step
    return timestamps


def _encode_jpeg_base64(frame) -> str:
    ok, buffer = cv2.imencode(".jpg", frame)
    if not ok:
        raise FrameExtractionError(FRAME_READ_ERROR)
    return base64.b64encode(buffer.tobytes()).decode("ascii")


def _duration_seconds(capture: "cv2.VideoCapture") -> float:
    fps = capture.get(cv2.CAP_PROP_FPS)
    total_frames = capture.get(cv2.CAP_PROP_FRAME_COUNT)
    if not fps or fps <= 0 or not math.isfinite(fps):
        return 0.0
    return total_frames / fps


def _capture_params(timeout_s: Optional[float]) -> list[int]:
    if not timeout_s or timeout_s <= 0:
        return []
    timeout_ms = int(timeout_s * 1000)
    return [
        cv2.CAP_PROP_OPEN_TIMEOUT_MSEC, timeout_ms,
        cv2.CAP_PROP_READ_TIMEOUT_MSEC, timeout_ms,
    ]


def _open_capture(path: str, params: list[int]) -> "cv2.VideoCapture":
    if params:
        return cv2.VideoCapture(path, cv2.CAP_ANY, params)
    return cv2.VideoCapture(path)


def _sample_from_path(
    path: str, frame_count: int, load_error: str, params: Optional[list[int]] = None
) -> list[str]:
    capture = _open_capture(path, params or [])
    try:
        if not capture.isOpened():
            raise FrameExtractionError(load_error)

        duration = _duration_seconds(capture)
        timestamps = sample_timestamps(duration, frame_count)
        if not timestamps:
            raise FrameExtractionError(INVALID_DURATION_ERROR)

        frames: list[str] = []
        for timestamp in timestamps:
            capture.set(cv2.CAP_PROP_POS_MSEC, timestamp * 1000.0)
            ok, frame = capture.read()
            if not ok or frame is None:
                raise FrameExtractionError(FRAME_READ_ERROR)
            frames.append(_encode_jpeg_base64(frame))

        logger.debug(
            "Frames sampled",
            frame_count=len(frames),
            duration_s=round(duration, 3),
            width=int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            height=int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )
        return frames
    finally:
        capture.release()


def extract_frames(
    source: VideoSource,
    frame_count: int = DEFAULT_FRAME_COUNT,
    timeout_s: Optional[float] = None,
) -> list[str]:
    """Sample ``frame_count`` frames from ``source`` as base64 JPEG strings.

    Args:
        source:      Raw video bytes, a local file path, or an http(s) URL.
        frame_count: Number of frames to sample.
        timeout_s:   Open and read timeout applied to http(s) sources.

    Returns:
        Up to ``frame_count`` base64 strings, in playback order.

    Raises:
        FrameExtractionError: Video could not be opened, has an invalid duration
                              (zero, unknown, live stream), or a frame could not
                              be decoded.
    """
    if isinstance(source, (bytes, bytearray)):
        fd, temp_path = tempfile.mkstemp(suffix=".mp4", prefix="authenticheck-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(source)
            return _sample_from_path(temp_path, frame_count, FILE_LOAD_ERROR)
        finally:
            try:
                os.unlink(temp_path)
            except OSError as exc:
                logger.warning("Temp video cleanup failed", path=temp_path, error=str(exc))

    if _is_url(source):
        return _sample_from_path(source, frame_count, URL_LOAD_ERROR, _capture_params(timeout_s))
    return _sample_from_path(source, frame_count, FILE_LOAD_ERROR)

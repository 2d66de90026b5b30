"""Input validation run before any outbound detection call.

All checks raise ``InputValidationError`` (HTTP 400) or, for oversized input,
``PayloadTooLargeError`` (HTTP 413). The messages are the ones shown in the
browser's error banner.
"""

from __future__ import annotations

import base64
import binascii
from typing import Optional
from urllib.parse import urlparse

from app.constants import (
    ACCEPTED_MIME_TYPES,
    MAX_IMAGE_BYTES,
    MAX_TEXT_LENGTH,
    MAX_VIDEO_BYTES,
)
from app.detection.errors import InputValidationError, PayloadTooLargeError
from app.models.scan import ContentType

_MAX_BYTES: dict[ContentType, int] = {
    ContentType.IMAGE: MAX_IMAGE_BYTES,
    ContentType.VIDEO: MAX_VIDEO_BYTES,
}

_EXTENSION_MIME_TYPES: dict[str, str] = {
    ".txt": "text/plain",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".mp4": "video/mp4",
}


def validate_text(text: Optional[str]) -> str:
    """Return ``text`` unchanged if it is non-blank and within MAX_TEXT_LENGTH."""
    if text is None or not text.strip():
        raise InputValidationError("Please enter some text to analyze.")
    if len(text) > MAX_TEXT_LENGTH:
        raise PayloadTooLargeError(
            f"Text exceeds the maximum length of {MAX_TEXT_LENGTH} characters."
        )
    return text


def guess_mime_type(file_name: Optional[str]) -> Optional[str]:
    """MIME type from a file extension, for uploads that arrive without one."""
    if not file_name or "." not in file_name:
        return None
    extension = file_name[file_name.rfind("."):].lower()
    return _EXTENSION_MIME_TYPES.get(extension)


def validate_upload(
    content_type: ContentType,
    data: bytes,
    mime_type: Optional[str] = None,
    file_name: Optional[str] = None,
) -> str:
    """Validate an uploaded file and return its effective MIME type.

    Text uploads (``.txt``) are decoded and run through ``validate_text()``.

    Raises:
        InputValidationError: Empty upload, wrong MIME type, or undecodable text.
        PayloadTooLargeError: File exceeds the per-type size limit.
    """
    if not data:
        raise InputValidationError("Please select a file to analyze.")

    effective_mime = (mime_type or "").split(";")[0].strip().lower()
    if not effective_mime or effective_mime == "application/octet-stream":
        effective_mime = guess_mime_type(file_name) or effective_mime

    accepted = ACCEPTED_MIME_TYPES[content_type]
    if effective_mime not in accepted:
        raise InputValidationError(
            f"Unsupported file type for {content_type.value}. "
            f"Accepted: {', '.join(sorted(accepted))}."
        )

    if content_type == ContentType.TEXT:
        try:
            validate_text(data.decode("utf-8-sig"))
        except UnicodeDecodeError as exc:
            raise InputValidationError("Text files must be UTF-8 encoded.") from exc
        return effective_mime

    limit = _MAX_BYTES[content_type]
    if len(data) > limit:
        raise PayloadTooLargeError(
            f"File is too large. Max size for {content_type.value} is "
            f"{limit // (1024 * 1024)}MB."
        )
    return effective_mime


def validate_video_url(url: Optional[str]) -> str:
    """Return the stripped URL if it is a non-empty http(s) URL."""
    if url is None or not url.strip():
        raise InputValidationError("Please enter a video URL to analyze.")
    candidate = url.strip()
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InputValidationError("Please enter a valid http(s) video URL.")
    return candidate


def data_url_mime_type(data: str) -> Optional[str]:
    """MIME type carried by a ``data:<mime>;base64,`` prefix, if any."""
    if not data.startswith("data:") or "," not in data:
        return None
    header = data[len("data:"):data.index(",")]
    mime_type = header.split(";")[0].strip().lower()
    return mime_type or None


def decode_base64_payload(data: str) -> bytes:
    """Decode a base64 payload, accepting an optional ``data:...;base64,`` prefix."""
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InputValidationError("File data is not valid base64.") from exc

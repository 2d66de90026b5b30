"""Shared constants for AuthentiCheck.

All size limits, score thresholds and numeric caps used across modules are
defined here. No magic numbers in other modules — import from here.
"""

from app.models.scan import ContentType

# ─── Input Limits ─────────────────────────────────────────────────────────────

# Maximum number of characters accepted for a text scan.
MAX_TEXT_LENGTH: int = 10_000

MAX_IMAGE_SIZE_MB: int = 10
MAX_VIDEO_SIZE_MB: int = 100

MAX_IMAGE_BYTES: int = MAX_IMAGE_SIZE_MB * 1024 * 1024
MAX_VIDEO_BYTES: int = MAX_VIDEO_SIZE_MB * 1024 * 1024

# Hard cap on any request body, enforced by BodySizeLimitMiddleware before a
# route runs. A 100 MB video sent base64-encoded in a JSON body grows by 4/3,
# plus room for multipart framing and the JSON envelope.
MAX_REQUEST_BODY_BYTES: int = (MAX_VIDEO_BYTES * 4) // 3 + 1_048_576

# ─── Accepted Input Types ─────────────────────────────────────────────────────

ACCEPTED_MIME_TYPES: dict[ContentType, frozenset[str]] = {
    ContentType.TEXT: frozenset({"text/plain"}),
    ContentType.IMAGE: frozenset({"image/jpeg", "image/png"}),
    ContentType.VIDEO: frozenset({"video/mp4"}),
}

# Per-type form settings served to the browser page via GET /api/config.
CONTENT_TYPE_CONFIG: dict[ContentType, dict] = {
    ContentType.TEXT: {
        "accept": ".txt",
        "maxSize": MAX_TEXT_LENGTH,
        "label": "Paste text or upload a .txt file",
    },
    ContentType.IMAGE: {
        "accept": "image/jpeg, image/png",
        "maxSize": MAX_IMAGE_BYTES,
        "label": "Upload a JPEG or PNG image",
    },
    ContentType.VIDEO: {
        "accept": "video/mp4",
        "maxSize": MAX_VIDEO_BYTES,
        "label": "Upload an MP4 video",
    },
}

# ─── Scoring ──────────────────────────────────────────────────────────────────

# Provider ai_score (0.0–1.0) above which a provider reports AI markers.
AI_MARKER_THRESHOLD: float = 0.4

# Overall score (0–100) verdict bands.
HUMAN_SCORE_CEILING: float = 30.0
ASSISTED_SCORE_CEILING: float = 70.0

# ─── Video Sampling / Polling ─────────────────────────────────────────────────

# Frames sampled from a video before it is sent to the backend proxy engine.
DEFAULT_FRAME_COUNT: int = 5

# EdenAI async video job polling.
DEFAULT_POLL_INTERVAL_S: float = 5.0
DEFAULT_POLL_TIMEOUT_S: float = 600.0

# Outbound request timeout (seconds).
DEFAULT_REQUEST_TIMEOUT_S: float = 60.0

# ─── Browser Page ─────────────────────────────────────────────────────────────

LOADING_MESSAGES: tuple[str, ...] = (
    "Initializing detection engines...",
    "Analyzing content structure...",
    "For video, this may take several minutes...",
    "Cross-referencing with AI models...",
    "Extracting digital artifacts...",
    "Compiling multi-source report...",
    "Finalizing authenticity score...",
    "Still working... Large files can take longer.",
)

"""Manual inspection checklist shown next to every scan result."""

from __future__ import annotations

from app.models.scan import ContentType

MANUAL_TIPS: dict[ContentType, tuple[str, ...]] = {
    ContentType.TEXT: (
        "Check for repetitive sentence structures.",
        "Look for overly complex words used unnecessarily.",
        "Does the text lack a personal voice or anecdotes?",
        "Verify factual claims from independent sources.",
    ),
    ContentType.IMAGE: (
        "Zoom in on details like hands, teeth, and text.",
        "Examine shadows and reflections for consistency.",
        "Look for strange blurring or texture mismatches.",
        "Reverse image search to find its origin.",
    ),
    ContentType.VIDEO: (
        "Pay attention to lip-sync and blinking.",
        "Watch for unnatural movements or 'puppet-like' motion.",
        "Listen for robotic-sounding audio or weird background noise.",
        "Check the source of the video. Is it a reputable poster?",
    ),
}


def tips_for(content_type: ContentType) -> list[str]:
    """Return a fresh copy of the checklist for ``content_type``."""
    return list(MANUAL_TIPS[content_type])

"""Scan result contracts for AuthentiCheck.

  - ContentType     — what kind of content is being scanned (Text / Image / Video)
  - VideoInputType  — how a video was supplied (File / URL)
  - ApiDetail       — one detection provider's score and findings
  - ScanResult      — the record returned to the browser for every scan

ScanResult is the single source of truth for the wire format returned by all
scan endpoints and expected back from the backend proxy engine. Field names are
snake_case in Python and camelCase on the wire (``to_dict()`` / ``from_dict()``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ContentType(str, Enum):
    """Content kind tag. Values match the tab labels shown in the browser form."""

    TEXT = "Text"
    IMAGE = "Image"
    VIDEO = "Video"

    @classmethod
    def parse(cls, value: str) -> "ContentType":
        """Case-insensitive lookup: ``"video"``, ``"Video"`` and ``"VIDEO"`` all match.

        Raises:
            ValueError: If ``value`` names no content type.
        """
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise ValueError(f"Unknown content type: {value!r}")


class VideoInputType(str, Enum):
    FILE = "File"
    URL = "URL"

    @classmethod
    def of(cls, data: str) -> "VideoInputType":
        """URL for an http(s) address, File for anything else (base64 content)."""
        if data.strip().lower().startswith(("http://", "https://")):
            return cls.URL
        return cls.FILE


@dataclass
class ApiDetail:
    """Score reported by a single detection provider.

    Attributes:
        provider: Display name (e.g. ``"Winstonai"``, ``"Sensity AI"``).
        score:    AI-generated likelihood, 0–100.
        details:  Human-readable findings for the results breakdown.
    """

    provider: str
    score: float
    details: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"provider": self.provider, "score": self.score, "details": list(self.details)}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ApiDetail":
        return cls(
            provider=str(raw.get("provider", "Unknown")),
            score=float(raw.get("score") or 0.0),
            details=[str(d) for d in raw.get("details") or []],
        )


@dataclass
class ScanResult:
    """Outcome of one scan, as displayed on the results view.

    ``overall_score`` is the mean of the provider scores (0–100, two decimals).
    ``file_name`` is the uploaded file's name, ``"Video from URL"`` for URL scans,
    or None for pasted text.
    """

    overall_score: float
    content_type: ContentType
    analysis: list[ApiDetail]
    manual_inspection_tips: list[str]
    file_name: Optional[str] = None
    scan_id: Optional[str] = None

    @property
    def verdict(self) -> str:
        from app.detection.scoring import verdict_for_score  # local import avoids circularity

        return verdict_for_score(self.overall_score)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the camelCase JSON record consumed by the browser page."""
        payload: dict[str, Any] = {
            "overallScore": self.overall_score,
            "contentType": self.content_type.value,
            "analysis": [item.to_dict() for item in self.analysis],
            "manualInspectionTips": list(self.manual_inspection_tips),
            "verdict": self.verdict,
        }
        if self.file_name is not None:
            payload["fileName"] = self.file_name
        if self.scan_id is not None:
            payload["scanId"] = self.scan_id
        return payload

    @classmethod
    def from_dict(cls, raw: dict[str, Any], default_type: ContentType) -> "ScanResult":
        """Build a ScanResult from a camelCase JSON record (backend proxy response).

        Raises:
            ValueError: If ``overallScore`` is missing or not numeric, or
                        ``analysis`` is not a list.
        """
        if "overallScore" not in raw:
            raise ValueError("missing overallScore")
        overall = float(raw["overallScore"])

        analysis_raw = raw.get("analysis") or []
        if not isinstance(analysis_raw, list):
            raise ValueError("analysis must be a list")

        content_type = default_type
        if raw.get("contentType"):
            content_type = ContentType.parse(raw["contentType"])

        return cls(
            overall_score=round(overall, 2),
            content_type=content_type,
            analysis=[ApiDetail.from_dict(item) for item in analysis_raw if isinstance(item, dict)],
            manual_inspection_tips=[str(t) for t in raw.get("manualInspectionTips") or []],
            file_name=raw.get("fileName"),
        )

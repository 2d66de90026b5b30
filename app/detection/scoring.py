"""Provider result normalisation and score aggregation.

Detection providers report an ``ai_score`` in 0.0–1.0. This module turns a raw
provider payload into ``ApiDetail`` records (score 0–100 plus a findings line)
and averages them into the overall score shown on the results view.

There is no local detection logic: the score is whatever the providers say.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from app.constants import AI_MARKER_THRESHOLD, ASSISTED_SCORE_CEILING, HUMAN_SCORE_CEILING
from app.detection.errors import ProviderError
from app.models.scan import ApiDetail

NO_MARKERS_DETAIL = "No significant AI markers detected."


def provider_display_name(key: str) -> str:
    """``"winstonai"`` → ``"Winstonai"`` (first letter upper-cased, rest untouched)."""
    return key[:1].upper() + key[1:]


def describe_ai_score(ai_score: Optional[float]) -> list[str]:
    """Findings line for a provider's raw 0.0–1.0 score."""
    if ai_score is not None and ai_score > AI_MARKER_THRESHOLD:
        return [f"AI markers detected with confidence {ai_score:.2f}"]
    return [NO_MARKERS_DETAIL]


def detail_from_provider(name: str, provider_result: Mapping[str, Any]) -> ApiDetail:
    """Build one ApiDetail from a successful provider payload."""
    raw_score = provider_result.get("ai_score")
    ai_score = float(raw_score) if raw_score is not None else None
    return ApiDetail(
        provider=name,
        score=(ai_score or 0.0) * 100,
        details=describe_ai_score(ai_score),
    )


def details_from_results(results: Mapping[str, Any]) -> list[ApiDetail]:
    """Normalise a ``{provider_key: payload}`` mapping.

    Providers whose ``status`` is not ``"success"`` are dropped.

    Raises:
        ProviderError: If no provider succeeded.
    """
    analysis = [
        detail_from_provider(provider_display_name(key), payload)
        for key, payload in results.items()
        if isinstance(payload, Mapping) and payload.get("status") == "success"
    ]
    if not analysis:
        raise ProviderError("None of the AI detection providers were successful.")
    return analysis


def overall_score(analysis: list[ApiDetail]) -> float:
    """Arithmetic mean of provider scores, rounded to two decimals."""
    if not analysis:
        return 0.0
    return round(sum(item.score for item in analysis) / len(analysis), 2)


def verdict_for_score(score: float) -> str:
    """Verdict label shown under the overall score."""
    if score < HUMAN_SCORE_CEILING:
        return "Likely Human-Generated"
    if score < ASSISTED_SCORE_CEILING:
        return "Potentially AI-Assisted"
    return "Likely AI-Generated"
